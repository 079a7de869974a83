"""Calendar events as planning commitments - parsing, inference, dedup.

Pure logic. Providers hand over their raw JSON events; this module turns
them into blocking TimeSlots and merges the per-provider lists.
"""

import logging
import re
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .slots import TimeSlot
from .tasks import EnergyLevel, FocusType

logger = logging.getLogger(__name__)

DEDUP_TOLERANCE = timedelta(minutes=5)
END_OF_DAY = time(23, 59, 59, 999000)
LARGE_MEETING_ATTENDEES = 8

HIGH_ENERGY_TITLE_KEYWORDS = ("focus", "deep work", "coding", "development")
LOW_ENERGY_TITLE_KEYWORDS = ("all hands", "town hall", "large meeting", "presentation")

# Outlook-only signals
HIGH_ENERGY_IMPORTANCE = {"high"}
LOW_ENERGY_IMPORTANCE = {"low"}
HIGH_ENERGY_SHOW_AS = {"workingElsewhere"}
LOW_ENERGY_SHOW_AS = {"tentative"}

FOCUS_KEYWORDS = {
    FocusType.TECHNICAL: re.compile(
        r"\b(code|tech|review|development|engineering|system|architecture|debug|api|technical)\b"
    ),
    FocusType.CREATIVE: re.compile(
        r"\b(design|creative|brainstorm|ideation|workshop|innovation|strategy)\b"
    ),
    FocusType.ADMINISTRATIVE: re.compile(
        r"\b(admin|expense|report|compliance|hr|legal|budget|planning)\b"
    ),
    FocusType.SOCIAL: re.compile(r"\b(meeting|standup|sync|1:1|one-on-one|team)\b"),
}

CATEGORY_HINTS = {
    FocusType.TECHNICAL: "technical",
    FocusType.CREATIVE: "creative",
    FocusType.ADMINISTRATIVE: "admin",
}

_FRACTION = re.compile(r"(\.\d{6})\d+")


class MalformedEventError(ValueError):
    """A single provider event that cannot become a TimeSlot."""

    pass


def parse_datetime(value: str) -> datetime:
    """Parse provider ISO timestamps (Z suffix, 7-digit Graph fractions)."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(r"\1", value)
    return datetime.fromisoformat(value)


def _zone(name: str | None) -> tzinfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _localize(dt: datetime, tz: tzinfo | None, source_zone: tzinfo | None = None) -> datetime:
    """Express dt in tz; naive input is read in source_zone first."""
    if dt.tzinfo is None:
        zone = source_zone or tz
        if zone is None:
            return dt
        dt = dt.replace(tzinfo=zone)
    if tz is None:
        return dt.astimezone().replace(tzinfo=None)
    return dt.astimezone(tz)


def _all_day_bounds(first_day: date, end_day: date, tz: tzinfo | None) -> tuple[datetime, datetime]:
    # Provider end dates are exclusive
    last_day = max(first_day, end_day - timedelta(days=1))
    return (
        datetime.combine(first_day, time.min, tzinfo=tz),
        datetime.combine(last_day, END_OF_DAY, tzinfo=tz),
    )


def infer_energy_level(
    title: str,
    attendee_count: int,
    importance: str | None = None,
    show_as: str | None = None,
) -> EnergyLevel:
    """Guess how draining an event is from its title and size."""
    title = (title or "").lower()

    if (
        attendee_count == 0
        or any(k in title for k in HIGH_ENERGY_TITLE_KEYWORDS)
        or importance in HIGH_ENERGY_IMPORTANCE
        or show_as in HIGH_ENERGY_SHOW_AS
    ):
        return EnergyLevel.HIGH

    if (
        attendee_count > LARGE_MEETING_ATTENDEES
        or any(k in title for k in LOW_ENERGY_TITLE_KEYWORDS)
        or importance in LOW_ENERGY_IMPORTANCE
        or show_as in LOW_ENERGY_SHOW_AS
    ):
        return EnergyLevel.LOW

    return EnergyLevel.MEDIUM


def infer_focus_types(
    text: str,
    attendee_count: int,
    categories: list[str] | None = None,
) -> list[FocusType]:
    """Match event text against the focus vocabularies."""
    categories = [c.lower() for c in categories or []]
    content = " ".join([text or "", *categories]).lower()

    found = []
    for focus_type, pattern in FOCUS_KEYWORDS.items():
        hint = CATEGORY_HINTS.get(focus_type)
        matched = bool(pattern.search(content))
        if hint and any(hint in c for c in categories):
            matched = True
        if focus_type == FocusType.SOCIAL and attendee_count > 0:
            matched = True
        if matched:
            found.append(focus_type)

    if not found:
        found.append(FocusType.SOCIAL if attendee_count > 0 else FocusType.TECHNICAL)
    return found


def _check_item(item, label: str) -> None:
    if not isinstance(item, dict):
        raise MalformedEventError(f"{label} is not an object: {type(item).__name__}")


def parse_google_event(item: dict, tz: tzinfo | None = None) -> TimeSlot:
    """Convert a Google Calendar API event into a blocking TimeSlot."""
    _check_item(item, "Event")
    try:
        return _google_slot(item, tz)
    except MalformedEventError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedEventError(f"Event has invalid fields: {e}") from e


def _google_slot(item: dict, tz: tzinfo | None) -> TimeSlot:
    start_raw = item.get("start")
    end_raw = item.get("end")
    if not start_raw or not end_raw:
        raise MalformedEventError("Event missing start or end time")

    try:
        if start_raw.get("date") and end_raw.get("date"):
            is_all_day = True
            start, end = _all_day_bounds(
                date.fromisoformat(start_raw["date"]),
                date.fromisoformat(end_raw["date"]),
                tz,
            )
        elif start_raw.get("dateTime") and end_raw.get("dateTime"):
            is_all_day = False
            start = _localize(parse_datetime(start_raw["dateTime"]), tz, _zone(start_raw.get("timeZone")))
            end = _localize(parse_datetime(end_raw["dateTime"]), tz, _zone(end_raw.get("timeZone")))
        else:
            raise MalformedEventError("Event has invalid date/time format")
    except MalformedEventError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedEventError(f"Event has invalid date/time format: {e}") from e

    if start >= end:
        raise MalformedEventError("Event end time must be after start time")

    title = item.get("summary") or ""
    description = item.get("description") or ""
    attendees = len(item.get("attendees") or [])

    return TimeSlot(
        start=start,
        end=end,
        energy_level=infer_energy_level(title, attendees),
        preferred_focus_types=infer_focus_types(f"{title} {description}", attendees),
        is_available=False,
        source="google",
        event_id=item.get("id"),
        title=title or "Untitled Event",
        description=description,
        is_all_day=is_all_day,
    )


def parse_outlook_event(item: dict, tz: tzinfo | None = None) -> TimeSlot:
    """Convert a Microsoft Graph event into a blocking TimeSlot."""
    _check_item(item, "Outlook event")
    try:
        return _outlook_slot(item, tz)
    except MalformedEventError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedEventError(f"Outlook event has invalid fields: {e}") from e


def _outlook_slot(item: dict, tz: tzinfo | None) -> TimeSlot:
    start_raw = item.get("start")
    end_raw = item.get("end")
    if not start_raw or not end_raw:
        raise MalformedEventError("Outlook event missing start or end time")

    try:
        if item.get("isAllDay"):
            is_all_day = True
            first = start_raw.get("dateTime") or start_raw.get("date")
            last = end_raw.get("dateTime") or end_raw.get("date")
            if not first or not last:
                raise MalformedEventError("Outlook event has invalid date/time format")
            start, end = _all_day_bounds(
                parse_datetime(first).date(), parse_datetime(last).date(), tz
            )
        elif start_raw.get("dateTime") and end_raw.get("dateTime"):
            is_all_day = False
            start = _localize(parse_datetime(start_raw["dateTime"]), tz, _zone(start_raw.get("timeZone")))
            end = _localize(parse_datetime(end_raw["dateTime"]), tz, _zone(end_raw.get("timeZone")))
        else:
            raise MalformedEventError("Outlook event has invalid date/time format")
    except MalformedEventError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedEventError(f"Outlook event has invalid date/time format: {e}") from e

    if start >= end:
        raise MalformedEventError("Outlook event end time must be after start time")

    title = item.get("subject") or ""
    body = (item.get("body") or {}).get("content") or ""
    attendees = len(item.get("attendees") or [])

    return TimeSlot(
        start=start,
        end=end,
        energy_level=infer_energy_level(
            title,
            attendees,
            importance=item.get("importance", "normal"),
            show_as=item.get("showAs", "busy"),
        ),
        preferred_focus_types=infer_focus_types(
            f"{title} {body}", attendees, item.get("categories") or []
        ),
        is_available=False,
        source="outlook",
        event_id=item.get("id"),
        title=title or "Untitled Event",
        description=item.get("bodyPreview") or body,
        is_all_day=is_all_day,
    )


def are_duplicates(a: TimeSlot, b: TimeSlot, tolerance: timedelta = DEDUP_TOLERANCE) -> bool:
    """Same real-world event seen through two different providers."""
    if a.source == b.source:
        return False
    return abs(a.start - b.start) <= tolerance and abs(a.end - b.end) <= tolerance


def deduplicate(slots: list[TimeSlot], tolerance: timedelta = DEDUP_TOLERANCE) -> list[TimeSlot]:
    """
    Drop cross-provider duplicates, keeping the first occurrence.

    Pure function - no I/O.
    """
    kept: list[TimeSlot] = []
    for slot in slots:
        duplicate_of = next((k for k in kept if are_duplicates(slot, k, tolerance)), None)
        if duplicate_of is not None:
            logger.debug(
                f"Duplicate calendar event removed: {slot.source} '{slot.title}' "
                f"matches {duplicate_of.source} at {slot.start.isoformat()}"
            )
            continue
        kept.append(slot)

    removed = len(slots) - len(kept)
    if removed:
        logger.info(f"Calendar deduplication: {removed} duplicates removed from {len(slots)} events")
    return kept
