"""User settings repository interface."""

from typing import Protocol

from dayplanner.core.tasks import UserSettings


class UserSettingsRepository(Protocol):
    """Interface for per-user planning preferences."""

    def get(self, user_id: str) -> UserSettings | None:
        """Fetch settings for a user. Returns None if none are stored."""
        ...

    def create(self, settings: UserSettings) -> UserSettings:
        """Store settings for a user and return what was stored."""
        ...
