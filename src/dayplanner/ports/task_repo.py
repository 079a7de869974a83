"""Task repository interface."""

from typing import Protocol

from dayplanner.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for reading a user's tasks and their prerequisite edges."""

    def find_all(self, user_id: str) -> list[Task]:
        """Fetch all tasks owned by a user."""
        ...

    def find_dependencies(self, task_id: str) -> list[dict]:
        """Fetch prerequisite edges for a task as [{"dependsOn": id}, ...]."""
        ...
