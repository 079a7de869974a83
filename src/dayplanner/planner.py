"""Daily planning service - wires repositories, calendar and the pure core.

Flow for one plan: load tasks, drop finished/blocked ones, load settings,
fetch calendar commitments, drop tasks with unmet prerequisites, score,
cut the day into slots, assign, assemble.
"""

import logging
import re
from dataclasses import replace
from datetime import date, datetime, tzinfo
from zoneinfo import ZoneInfo

from .adapters.composite_calendar import CalendarAdapter
from .adapters.json_store import JsonSettingsRepository, JsonTaskRepository
from .config import Config, load_config
from .core import dependencies
from .core.assignment import assign_tasks
from .core.plan import DailyPlan, build_daily_plan
from .core.scoring import score_tasks
from .core.slots import TimeSlot, generate_time_slots
from .core.tasks import Task, UserSettings, filter_schedulable
from .errors import InvalidDateError
from .ports import TaskRepository, UserSettingsRepository

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_target_date(value) -> date:
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DATE_PATTERN.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise InvalidDateError(value)


def _to_zone(dt: datetime, tz: tzinfo | None) -> datetime:
    """Express dt in tz; None means naive local time, as the slot generator uses."""
    if tz is None:
        return dt.astimezone().replace(tzinfo=None) if dt.tzinfo else dt
    return dt.astimezone(tz)


def align_commitments(commitments: list[TimeSlot], tz: tzinfo | None) -> list[TimeSlot]:
    """Move calendar commitments into the planning timezone so they compare with slots."""
    return [replace(c, start=_to_zone(c.start, tz), end=_to_zone(c.end, tz)) for c in commitments]


class DailyPlannerService:
    """Generates daily plans for a user."""

    def __init__(
        self,
        task_repo: TaskRepository,
        settings_repo: UserSettingsRepository,
        calendar: CalendarAdapter | None = None,
        tz: tzinfo | None = None,
    ):
        self.task_repo = task_repo
        self.settings_repo = settings_repo
        self.calendar = calendar
        self.tz = tz
        if calendar is not None and calendar.tz is None:
            calendar.tz = tz

    @classmethod
    def from_config(cls, config: Config | None = None) -> "DailyPlannerService":
        """JSON-backed service with whichever calendars are configured."""
        config = config or load_config()
        tz = ZoneInfo(config.timezone)
        data_dir = config.resolved_data_dir()
        calendar = None
        if config.google_enabled or config.outlook_enabled:
            calendar = CalendarAdapter.from_config(config, tz=tz)
        return cls(
            JsonTaskRepository(data_dir / "tasks.json"),
            JsonSettingsRepository(data_dir / "settings.json"),
            calendar=calendar,
            tz=tz,
        )

    def _get_settings(self, user_id: str) -> UserSettings:
        settings = self.settings_repo.get(user_id)
        if settings is None:
            logger.info(f"No settings for {user_id}, creating defaults")
            settings = self.settings_repo.create(UserSettings.defaults(user_id))
        return settings

    def build_plan(self, user_id: str, target_date) -> DailyPlan:
        """
        Build the DailyPlan for one user and day.

        Raises:
            InvalidDateError: target_date is not a date or YYYY-MM-DD string
            CircularDependencyError: the open tasks depend on each other in a loop
        """
        day = parse_target_date(target_date)
        logger.info(f"Generating daily plan for {user_id} on {day}")

        all_tasks = self.task_repo.find_all(user_id)
        tasks = filter_schedulable(all_tasks)
        settings = self._get_settings(user_id)
        commitments = self.calendar.get_commitments(user_id, day) if self.calendar else []
        commitments = align_commitments(commitments, self.tz)

        # Loops are only checked among schedulable tasks
        dependencies.detect_cycle(dependencies.build_graph(tasks, self.task_repo.find_dependencies))
        # Finished tasks stay in the readiness graph so their dependents can become ready
        graph = dependencies.build_graph(all_tasks, self.task_repo.find_dependencies)
        ready = dependencies.filter_ready(tasks, graph)

        scored = score_tasks(ready, day, settings)
        slots = generate_time_slots(day, settings, commitments, self.tz)
        assignments = assign_tasks(scored, slots)
        plan = build_daily_plan(day, scored, assignments)

        logger.info(
            f"Plan for {day}: {len(plan.schedule_blocks)} scheduled, "
            f"{len(plan.unscheduled_tasks)} unscheduled"
        )
        return plan

    def generate_plan(self, user_id: str, target_date) -> dict:
        """Build the plan and serialize it to the camelCase response shape."""
        return self.build_plan(user_id, target_date).to_dict()

    def resolve_dependencies(self, tasks: list[Task]) -> dict:
        """Ready vs blocked split for a batch of tasks."""
        resolution = dependencies.resolve_dependencies(tasks, self.task_repo.find_dependencies)
        return resolution.to_dict()

    def get_calendar_events(self, user_id: str, target_date) -> dict:
        """Day's calendar events, or an empty listing when no calendar is configured."""
        day = parse_target_date(target_date)
        if not self.calendar:
            return {
                "date": day.isoformat(),
                "events": [],
                "totalEvents": 0,
                "sources": {"google": 0, "outlook": 0},
            }
        return self.calendar.get_calendar_events(user_id, day)
