"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskRepository
from .settings_repo import UserSettingsRepository
from .calendar_provider import CalendarProvider

__all__ = [
    "TaskRepository",
    "UserSettingsRepository",
    "CalendarProvider",
]
