"""Plan assembly, optimization metrics and the output contract."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from .assignment import ScheduleAssignment
from .scoring import ScoredTask
from .tasks import Task


@dataclass
class ScheduleBlock:
    start: datetime
    end: datetime
    task: ScoredTask
    slot_index: int
    energy_match: float
    focus_match: float
    reasoning: str


@dataclass
class DailyPlan:
    """One day's schedule plus how well it fits the user."""

    date: date
    schedule_blocks: list[ScheduleBlock] = field(default_factory=list)
    unscheduled_tasks: list[ScoredTask] = field(default_factory=list)
    total_estimated_minutes: int = 0
    energy_optimization: float = 0.0
    focus_optimization: float = 0.0
    deadline_risk: float = 0.0

    def to_dict(self) -> dict:
        """Serialize to the camelCase response shape."""
        return {
            "date": self.date.isoformat(),
            "scheduleBlocks": [
                {
                    "startTime": to_iso(b.start),
                    "endTime": to_iso(b.end),
                    "task": task_to_dict(b.task.task),
                    "energyMatch": b.energy_match,
                    "focusMatch": b.focus_match,
                    "reasoning": b.reasoning,
                }
                for b in self.schedule_blocks
            ],
            "unscheduledTasks": [task_to_dict(t.task) for t in self.unscheduled_tasks],
            "totalEstimatedMinutes": self.total_estimated_minutes,
            "energyOptimization": self.energy_optimization,
            "focusOptimization": self.focus_optimization,
            "deadlineRisk": self.deadline_risk,
        }


def to_iso(dt: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. 2025-01-15T14:00:00.000Z.

    Naive datetimes are taken as local time.
    """
    utc = dt.astimezone(timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def task_to_dict(task: Task) -> dict:
    data = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "energyLevel": task.energy_level.value if task.energy_level else None,
        "focusType": task.focus_type.value if task.focus_type else None,
        "estimatedMinutes": task.estimated_minutes,
        "priority": task.priority,
    }
    if task.hard_deadline:
        data["hardDeadline"] = to_iso(task.hard_deadline)
    return data


def assemble_blocks(assignments: dict[str, ScheduleAssignment]) -> list[ScheduleBlock]:
    """Turn assignments into blocks ordered by start time."""
    blocks = [
        ScheduleBlock(
            start=a.slot.start,
            end=a.slot.end,
            task=a.task,
            slot_index=a.slot_index,
            energy_match=a.energy_match,
            focus_match=a.focus_match,
            reasoning=a.reasoning,
        )
        for a in assignments.values()
    ]
    return sorted(blocks, key=lambda b: b.start)


def compute_metrics(
    blocks: list[ScheduleBlock],
    scored_tasks: list[ScoredTask],
) -> tuple[float, float, float]:
    """
    Plan-level quality in [0, 1].

    Returns:
        (energy_optimization, focus_optimization, deadline_risk). Energy and
        focus are mean block matches; deadline risk is the share of
        high-priority hard-deadline tasks left off the schedule.
    """
    if not blocks:
        return 0.0, 0.0, 0.0

    energy = sum(b.energy_match for b in blocks) / len(blocks)
    focus = sum(b.focus_match for b in blocks) / len(blocks)

    at_risk = [t for t in scored_tasks if t.task.is_high_priority_deadline()]
    scheduled = [b for b in blocks if b.task.task.is_high_priority_deadline()]
    deadline_risk = 1 - len(scheduled) / len(at_risk) if at_risk else 0.0

    return energy, focus, deadline_risk


def build_daily_plan(
    target_date: date,
    scored_tasks: list[ScoredTask],
    assignments: dict[str, ScheduleAssignment],
) -> DailyPlan:
    """Assemble blocks, leftovers and metrics into a DailyPlan."""
    blocks = assemble_blocks(assignments)
    energy, focus, risk = compute_metrics(blocks, scored_tasks)
    return DailyPlan(
        date=target_date,
        schedule_blocks=blocks,
        unscheduled_tasks=[t for t in scored_tasks if t.id not in assignments],
        total_estimated_minutes=sum(b.task.task.duration_minutes() for b in blocks),
        energy_optimization=energy,
        focus_optimization=focus,
        deadline_risk=risk,
    )
