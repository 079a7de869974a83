"""Greedy task-to-slot assignment - no I/O dependencies."""

from dataclasses import dataclass

from .scoring import ScoredTask
from .slots import TimeSlot
from .tasks import Task

ENERGY_WEIGHT = 0.4
FOCUS_WEIGHT = 0.3
DURATION_WEIGHT = 0.3

MATCH = 1.0
NEUTRAL = 0.5
ENERGY_MISMATCH = 0.3
FOCUS_MISMATCH = 0.4
STRONG_MATCH = 0.8


@dataclass
class ScheduleAssignment:
    """A task bound to one generated slot."""

    task: ScoredTask
    slot: TimeSlot
    slot_index: int
    energy_match: float
    focus_match: float
    reasoning: str


def energy_match(task: Task, slot: TimeSlot) -> float:
    if not task.energy_level:
        return NEUTRAL
    return MATCH if task.energy_level == slot.energy_level else ENERGY_MISMATCH


def focus_match(task: Task, slot: TimeSlot) -> float:
    if not task.focus_type:
        return NEUTRAL
    return MATCH if task.focus_type in slot.preferred_focus_types else FOCUS_MISMATCH


def duration_fit(task: Task, slot: TimeSlot) -> float:
    """1.0 when the task fits, shrinking with the overflow otherwise."""
    needed = task.duration_minutes()
    available = slot.duration_minutes()
    if needed <= available:
        return MATCH
    return max(0.0, 1 - (needed - available) / available)


def slot_fitness(task: Task, slot: TimeSlot) -> float:
    return (
        energy_match(task, slot) * ENERGY_WEIGHT
        + focus_match(task, slot) * FOCUS_WEIGHT
        + duration_fit(task, slot) * DURATION_WEIGHT
    )


def scheduling_reasoning(task: Task, energy: float, focus: float) -> str:
    """Human-readable justification for a placement."""
    reasons = []
    if energy > STRONG_MATCH:
        reasons.append(f"energy level matches ({task.energy_level.value})")
    if focus > STRONG_MATCH:
        reasons.append(f"focus type aligns ({task.focus_type.value})")
    if task.hard_deadline:
        reasons.append("deadline consideration")
    if task.priority and task.priority > 3:
        reasons.append("high priority")

    if not reasons:
        return "Best available slot"
    return f"Scheduled due to: {', '.join(reasons)}"


def find_best_slot(task: Task, slots: list[TimeSlot], used: set[int]) -> int:
    """Index of the fittest unused slot, or -1 when none remain."""
    best_index = -1
    best_score = -1.0
    for i, slot in enumerate(slots):
        if i in used:
            continue
        score = slot_fitness(task, slot)
        if score > best_score:
            best_score = score
            best_index = i
    return best_index


def assign_tasks(
    scored_tasks: list[ScoredTask],
    slots: list[TimeSlot],
) -> dict[str, ScheduleAssignment]:
    """
    Give each task, highest score first, the best slot still free.

    Pure function - no I/O. A slot holds at most one task; tasks left over
    once the slots run out are simply absent from the result.
    """
    assignments: dict[str, ScheduleAssignment] = {}
    used: set[int] = set()

    for scored in scored_tasks:
        index = find_best_slot(scored.task, slots, used)
        if index == -1:
            continue

        slot = slots[index]
        energy = energy_match(scored.task, slot)
        focus = focus_match(scored.task, slot)
        assignments[scored.id] = ScheduleAssignment(
            task=scored,
            slot=slot,
            slot_index=index,
            energy_match=energy,
            focus_match=focus,
            reasoning=scheduling_reasoning(scored.task, energy, focus),
        )
        used.add(index)

    return assignments
