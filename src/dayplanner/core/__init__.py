"""Functional core - pure planning logic with no I/O."""

from .tasks import EnergyLevel, FocusType, Task, TaskDependency, TaskStatus, UserSettings
from .dependencies import (
    DependencyGraph,
    DependencyResolution,
    build_graph,
    detect_cycle,
    filter_ready,
    resolve_dependencies,
)
from .scoring import ScoredTask, score_task, score_tasks
from .slots import TimeSlot, generate_time_slots
from .commitments import MalformedEventError, deduplicate, parse_google_event, parse_outlook_event
from .assignment import ScheduleAssignment, assign_tasks
from .plan import DailyPlan, ScheduleBlock, build_daily_plan, compute_metrics

__all__ = [
    # Tasks
    "EnergyLevel",
    "FocusType",
    "Task",
    "TaskDependency",
    "TaskStatus",
    "UserSettings",
    # Dependencies
    "DependencyGraph",
    "DependencyResolution",
    "build_graph",
    "detect_cycle",
    "filter_ready",
    "resolve_dependencies",
    # Scoring
    "ScoredTask",
    "score_task",
    "score_tasks",
    # Slots
    "TimeSlot",
    "generate_time_slots",
    # Calendar commitments
    "MalformedEventError",
    "deduplicate",
    "parse_google_event",
    "parse_outlook_event",
    # Assignment
    "ScheduleAssignment",
    "assign_tasks",
    # Plan
    "DailyPlan",
    "ScheduleBlock",
    "build_daily_plan",
    "compute_metrics",
]
