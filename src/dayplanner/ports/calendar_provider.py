"""Calendar provider interface."""

from datetime import datetime
from typing import Protocol

from dayplanner.core.slots import TimeSlot


class CalendarProvider(Protocol):
    """Interface for one external calendar backend."""

    name: str

    def get_events(
        self,
        user_id: str,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[dict]:
        """Fetch raw provider events overlapping [start, end]."""
        ...

    def parse_event(self, item: dict) -> TimeSlot:
        """Convert one raw event into a blocking TimeSlot.

        Raises MalformedEventError for events that cannot be placed.
        """
        ...
