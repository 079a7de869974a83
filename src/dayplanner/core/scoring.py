"""Multi-factor task scoring - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, time

from .tasks import EnergyLevel, FocusType, Task, UserSettings

PRIORITY_WEIGHT = 8
DEADLINE_MAX = 30
DEADLINE_DECAY_PER_DAY = 5

ENERGY_BONUS = {
    EnergyLevel.HIGH: 20,
    EnergyLevel.MEDIUM: 15,
    EnergyLevel.LOW: 10,
}

FOCUS_BONUS = {
    FocusType.CREATIVE: 8,
    FocusType.TECHNICAL: 8,
    FocusType.ADMINISTRATIVE: 6,
    FocusType.SOCIAL: 10,
}


@dataclass
class ScoredTask:
    """A task plus the components of its planning score."""

    task: Task
    priority_score: float
    deadline_score: float
    energy_score: float
    focus_score: float

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def score(self) -> float:
        return self.priority_score + self.deadline_score + self.energy_score + self.focus_score


def days_until_deadline(deadline: datetime, target_date: date) -> float:
    """Fractional days from the start of target_date, never negative."""
    day_start = datetime.combine(target_date, time.min, tzinfo=deadline.tzinfo)
    return max(0.0, (deadline - day_start).total_seconds() / 86400)


def score_task(task: Task, target_date: date, settings: UserSettings | None = None) -> ScoredTask:
    """
    Score one task for the target date.

    Pure function. settings is accepted for parity with the planner call
    site; the weights are fixed so the same inputs always score the same.
    """
    priority_score = task.priority * PRIORITY_WEIGHT if task.priority else 0

    deadline_score = 0.0
    if task.hard_deadline:
        days = days_until_deadline(task.hard_deadline, target_date)
        deadline_score = max(0.0, DEADLINE_MAX - days * DEADLINE_DECAY_PER_DAY)

    return ScoredTask(
        task=task,
        priority_score=priority_score,
        deadline_score=deadline_score,
        energy_score=ENERGY_BONUS[task.energy_level or EnergyLevel.MEDIUM],
        focus_score=FOCUS_BONUS[task.focus_type or FocusType.ADMINISTRATIVE],
    )


def score_tasks(
    tasks: list[Task],
    target_date: date,
    settings: UserSettings | None = None,
) -> list[ScoredTask]:
    """Score and sort descending; equal scores keep their input order."""
    scored = [score_task(t, target_date, settings) for t in tasks]
    return sorted(scored, key=lambda s: -s.score)
