"""JSON file repositories for tasks and user settings."""

import json
import logging
from pathlib import Path

from dayplanner.core.tasks import Task, UserSettings

logger = logging.getLogger(__name__)


def _read_json(path: Path, default):
    if not path.exists():
        return default
    return json.loads(path.read_text())


class JsonTaskRepository:
    """
    Tasks stored as a list of camelCase dicts in tasks.json.

    Implements TaskRepository protocol. Prerequisites live on each task's
    dependsOn list.
    """

    def __init__(self, path: Path):
        self.path = path
        self._tasks: dict[str, Task] | None = None

    def _load(self) -> dict[str, Task]:
        if self._tasks is None:
            data = _read_json(self.path, [])
            self._tasks = {}
            for item in data:
                task = Task.from_dict(item)
                self._tasks[task.id] = task
            logger.debug(f"Loaded {len(self._tasks)} tasks from {self.path}")
        return self._tasks

    def find_all(self, user_id: str) -> list[Task]:
        # Tasks without an owner belong to everyone (single-user stores)
        return [t for t in self._load().values() if not t.user_id or t.user_id == user_id]

    def find_dependencies(self, task_id: str) -> list[dict]:
        task = self._load().get(task_id)
        if task is None:
            return []
        return [{"taskId": task_id, "dependsOn": dep} for dep in task.depends_on]

    def save(self, tasks: list[Task]) -> None:
        """Replace the stored task list."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([t.to_dict() for t in tasks], indent=2))
        self._tasks = {t.id: t for t in tasks}


class JsonSettingsRepository:
    """Per-user settings in settings.json, keyed by user id."""

    def __init__(self, path: Path):
        self.path = path

    def get(self, user_id: str) -> UserSettings | None:
        data = _read_json(self.path, {})
        if user_id not in data:
            return None
        return UserSettings.from_dict({"userId": user_id, **data[user_id]})

    def create(self, settings: UserSettings) -> UserSettings:
        data = _read_json(self.path, {})
        data[settings.user_id] = settings.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
        logger.info(f"Stored settings for {settings.user_id}")
        return settings
