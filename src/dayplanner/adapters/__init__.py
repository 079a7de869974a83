"""Adapters - implementations of ports for external systems."""

from .composite_calendar import CalendarAdapter
from .google_calendar import GoogleCalendarProvider
from .json_store import JsonSettingsRepository, JsonTaskRepository
from .outlook_calendar import OutlookCalendarProvider
from .retry import (
    CalendarApiError,
    ErrorCategory,
    ErrorDetails,
    IntegrationNotConfiguredError,
    classify_error,
    fetch_with_retry,
)

__all__ = [
    "CalendarAdapter",
    "GoogleCalendarProvider",
    "OutlookCalendarProvider",
    "JsonTaskRepository",
    "JsonSettingsRepository",
    "CalendarApiError",
    "ErrorCategory",
    "ErrorDetails",
    "IntegrationNotConfiguredError",
    "classify_error",
    "fetch_with_retry",
]
