"""Errors that abort plan generation."""


class PlanningError(Exception):
    """Base class for conditions that stop a plan from being produced."""

    pass


class CircularDependencyError(PlanningError):
    """Raised when the task dependency graph contains a cycle."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"Circular dependency detected involving task {task_id}. "
            "Please resolve dependencies manually."
        )


class InvalidDateError(PlanningError):
    """Raised when the requested plan date cannot be understood."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
