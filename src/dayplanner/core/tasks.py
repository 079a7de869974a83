"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DEFAULT_ESTIMATED_MINUTES = 30


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    DONE = "DONE"


class EnergyLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class FocusType(str, Enum):
    CREATIVE = "CREATIVE"
    TECHNICAL = "TECHNICAL"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    SOCIAL = "SOCIAL"


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # fromisoformat only accepts the Z suffix from 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class Task:
    """A unit of work the planner can place on the day."""

    id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    priority: int = 3
    energy_level: EnergyLevel | None = None
    focus_type: FocusType | None = None
    estimated_minutes: int | None = None
    hard_deadline: datetime | None = None
    soft_deadline: datetime | None = None
    description: str | None = None
    depends_on: list[str] = field(default_factory=list)
    user_id: str = ""

    def duration_minutes(self) -> int:
        """Estimated duration, falling back to 30 minutes when unknown."""
        return self.estimated_minutes or DEFAULT_ESTIMATED_MINUTES

    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    def is_high_priority_deadline(self) -> bool:
        """Hard deadline and priority above 3."""
        return self.hard_deadline is not None and bool(self.priority) and self.priority > 3

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from the camelCase JSON shape used by the task store."""
        energy = data.get("energyLevel")
        focus = data.get("focusType")
        return cls(
            id=data["id"],
            title=data["title"],
            status=TaskStatus(data.get("status", "TODO")),
            priority=data.get("priority", 3),
            energy_level=EnergyLevel(energy) if energy else None,
            focus_type=FocusType(focus) if focus else None,
            estimated_minutes=data.get("estimatedMinutes"),
            hard_deadline=_parse_timestamp(data.get("hardDeadline")),
            soft_deadline=_parse_timestamp(data.get("softDeadline")),
            description=data.get("description"),
            depends_on=list(data.get("dependsOn", [])),
            user_id=data.get("userId", ""),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority,
            "energyLevel": self.energy_level.value if self.energy_level else None,
            "focusType": self.focus_type.value if self.focus_type else None,
            "estimatedMinutes": self.estimated_minutes,
            "description": self.description,
            "dependsOn": list(self.depends_on),
            "userId": self.user_id,
        }
        if self.hard_deadline:
            data["hardDeadline"] = self.hard_deadline.isoformat()
        if self.soft_deadline:
            data["softDeadline"] = self.soft_deadline.isoformat()
        return data


@dataclass
class TaskDependency:
    """Directed edge: task_id cannot start before depends_on is done."""

    task_id: str
    depends_on: str

    def __post_init__(self):
        if self.task_id == self.depends_on:
            raise ValueError(f"Task {self.task_id} cannot depend on itself")


@dataclass
class UserSettings:
    """Per-user energy and work-window preferences."""

    user_id: str
    morning_energy_level: EnergyLevel = EnergyLevel.HIGH
    afternoon_energy_level: EnergyLevel = EnergyLevel.MEDIUM
    work_start_time: str = "09:00"
    work_end_time: str = "17:00"
    focus_session_length: int = 90
    preferred_focus_types: list[FocusType] = field(default_factory=list)

    @classmethod
    def defaults(cls, user_id: str) -> "UserSettings":
        return cls(user_id=user_id)

    @classmethod
    def from_dict(cls, data: dict) -> "UserSettings":
        defaults = cls(user_id=data["userId"])
        morning = data.get("morningEnergyLevel")
        afternoon = data.get("afternoonEnergyLevel")
        return cls(
            user_id=data["userId"],
            morning_energy_level=EnergyLevel(morning) if morning else defaults.morning_energy_level,
            afternoon_energy_level=EnergyLevel(afternoon) if afternoon else defaults.afternoon_energy_level,
            work_start_time=data.get("workStartTime") or defaults.work_start_time,
            work_end_time=data.get("workEndTime") or defaults.work_end_time,
            focus_session_length=data.get("focusSessionLength") or defaults.focus_session_length,
            preferred_focus_types=[FocusType(f) for f in data.get("preferredFocusTypes", [])],
        )

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "morningEnergyLevel": self.morning_energy_level.value,
            "afternoonEnergyLevel": self.afternoon_energy_level.value,
            "workStartTime": self.work_start_time,
            "workEndTime": self.work_end_time,
            "focusSessionLength": self.focus_session_length,
            "preferredFocusTypes": [f.value for f in self.preferred_focus_types],
        }


def filter_schedulable(tasks: list[Task]) -> list[Task]:
    """Drop DONE and BLOCKED tasks before they reach the planner."""
    return [t for t in tasks if t.status not in (TaskStatus.DONE, TaskStatus.BLOCKED)]
