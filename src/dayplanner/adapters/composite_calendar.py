"""Composite calendar adapter - combines Google and Outlook into one busy list."""

import logging
import random
import time as time_module
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

from dayplanner.config import Config
from dayplanner.core.commitments import MalformedEventError, deduplicate
from dayplanner.core.plan import to_iso
from dayplanner.core.slots import TimeSlot
from dayplanner.ports.calendar_provider import CalendarProvider

from .retry import classify_error, fetch_with_retry

logger = logging.getLogger(__name__)

DAY_END = time(23, 59, 59, 999999)


class CalendarAdapter:
    """
    Fans out to every configured provider and merges their busy time.

    Provider failures are logged and degrade to "no events from that
    provider"; get_commitments never raises.
    """

    def __init__(
        self,
        providers: list[CalendarProvider],
        calendar_ids: dict[str, str] | None = None,
        tz: tzinfo | None = None,
        sleep: Callable[[float], None] = time_module.sleep,
        rng: Callable[[float, float], float] = random.uniform,
    ):
        self.providers = providers
        self.calendar_ids = calendar_ids or {}
        self.tz = tz
        self._sleep = sleep
        self._rng = rng

    @classmethod
    def from_config(cls, config: Config, tz: tzinfo | None = None) -> "CalendarAdapter":
        """Build an adapter with a provider for each configured integration."""
        from .google_calendar import GoogleCalendarProvider
        from .outlook_calendar import OutlookCalendarProvider

        tz = tz or ZoneInfo(config.timezone)
        providers: list[CalendarProvider] = []
        if config.google_enabled:
            providers.append(
                GoogleCalendarProvider(
                    config_folder=config.google_config_folder,
                    client_secret_file=config.google_client_secret_file,
                    timezone=config.timezone,
                    tz=tz,
                )
            )
        if config.outlook_enabled:
            providers.append(
                OutlookCalendarProvider(
                    client_id=config.outlook_client_id,
                    tenant=config.outlook_tenant,
                    timezone=config.timezone,
                    tz=tz,
                    token_file=config.resolved_outlook_token_file(),
                )
            )

        return cls(
            providers,
            calendar_ids={
                "google": config.google_calendar_id,
                "outlook": config.outlook_calendar_id,
            },
            tz=tz,
        )

    def day_window(self, target_date: date) -> tuple[datetime, datetime]:
        return (
            datetime.combine(target_date, time.min, tzinfo=self.tz),
            datetime.combine(target_date, DAY_END, tzinfo=self.tz),
        )

    def _fetch_provider(self, provider: CalendarProvider, user_id: str, start: datetime, end: datetime) -> list[TimeSlot]:
        """Fetch and parse one provider's events; malformed events are skipped."""
        calendar_id = self.calendar_ids.get(provider.name, "primary")
        raw_events = fetch_with_retry(
            lambda: provider.get_events(user_id, calendar_id, start, end),
            label=f"{provider.name} calendar",
            sleep=self._sleep,
            rng=self._rng,
        )

        slots = []
        for item in raw_events:
            try:
                slots.append(provider.parse_event(item))
            except MalformedEventError as e:
                event_id = item.get("id", "?") if isinstance(item, dict) else "?"
                logger.warning(f"Skipping malformed {provider.name} event {event_id}: {e}")
        return slots

    def _fetch_all(self, user_id: str, target_date: date) -> list[TimeSlot]:
        if not self.providers:
            return []

        start, end = self.day_window(target_date)
        with ThreadPoolExecutor(max_workers=len(self.providers)) as pool:
            futures = [
                (provider, pool.submit(self._fetch_provider, provider, user_id, start, end))
                for provider in self.providers
            ]

            slots: list[TimeSlot] = []
            for provider, future in futures:
                try:
                    slots.extend(future.result())
                except Exception as e:
                    details = classify_error(e)
                    logger.warning(
                        f"Failed to fetch {provider.name} events for {user_id}: "
                        f"{details.category.value} - {details.message}"
                    )

        return deduplicate(slots)

    def get_commitments(self, user_id: str, target_date: date) -> list[TimeSlot]:
        """All busy blocks for the day across providers, deduplicated."""
        try:
            commitments = self._fetch_all(user_id, target_date)
        except Exception as e:
            logger.error(f"Calendar integration failed for {user_id}: {e}")
            return []

        logger.info(f"Fetched {len(commitments)} calendar commitments for {user_id} on {target_date}")
        return commitments

    def get_calendar_events(self, user_id: str, target_date: date) -> dict:
        """Commitments as display-ready event dicts with per-source counts."""
        commitments = self.get_commitments(user_id, target_date)
        events = [event_to_dict(slot) for slot in commitments if slot.title]
        return {
            "date": target_date.isoformat(),
            "events": events,
            "totalEvents": len(events),
            "sources": {
                "google": sum(1 for e in events if e["source"] == "google"),
                "outlook": sum(1 for e in events if e["source"] == "outlook"),
            },
        }


def event_to_dict(slot: TimeSlot) -> dict:
    return {
        "id": slot.event_id,
        "title": slot.title,
        "description": slot.description,
        "startTime": to_iso(slot.start),
        "endTime": to_iso(slot.end),
        "source": slot.source,
        "energyLevel": slot.energy_level.value,
        "focusType": slot.preferred_focus_types[0].value if slot.preferred_focus_types else None,
        "isAllDay": slot.is_all_day,
    }
