"""Energy-aware time slot generation - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from .tasks import EnergyLevel, FocusType, UserSettings

logger = logging.getLogger(__name__)

DEFAULT_WORK_START = time(9, 0)
DEFAULT_WORK_END = time(17, 0)
DEFAULT_SESSION_MINUTES = 90

# (session length upper bound in minutes, break minutes)
BREAK_TABLE = [(60, 10), (90, 15), (120, 20)]
LONG_SESSION_BREAK = 25

_ONE_LEVEL_DOWN = {
    EnergyLevel.HIGH: EnergyLevel.MEDIUM,
    EnergyLevel.MEDIUM: EnergyLevel.LOW,
    EnergyLevel.LOW: EnergyLevel.LOW,
}

# energy -> (hour threshold, types before threshold, types from threshold on)
FOCUS_TABLE = {
    EnergyLevel.HIGH: (
        11,
        [FocusType.CREATIVE, FocusType.TECHNICAL],
        [FocusType.TECHNICAL, FocusType.CREATIVE],
    ),
    EnergyLevel.MEDIUM: (
        15,
        [FocusType.TECHNICAL, FocusType.ADMINISTRATIVE],
        [FocusType.ADMINISTRATIVE, FocusType.TECHNICAL],
    ),
    EnergyLevel.LOW: (
        16,
        [FocusType.ADMINISTRATIVE, FocusType.SOCIAL],
        [FocusType.SOCIAL, FocusType.ADMINISTRATIVE],
    ),
}


@dataclass
class TimeSlot:
    """A bounded interval [start, end) with an energy profile.

    Calendar commitments reuse this type and fill in the provenance fields.
    """

    start: datetime
    end: datetime
    energy_level: EnergyLevel = EnergyLevel.MEDIUM
    preferred_focus_types: list[FocusType] = field(default_factory=list)
    is_available: bool = True
    source: str | None = None
    event_id: str | None = None
    title: str | None = None
    description: str | None = None
    is_all_day: bool = False

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"Slot end {self.end.isoformat()} must be after start {self.start.isoformat()}")

    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another."""
        return self.start < other.end and other.start < self.end


def parse_work_time(value: str | None, default: time) -> time:
    """Parse HH:MM, returning default (with a warning) on anything malformed."""
    try:
        hour_str, minute_str = (value or "").split(":")
        hour, minute = int(hour_str), int(minute_str)
    except ValueError:
        logger.warning(f"Invalid time format: {value!r}, using {default.strftime('%H:%M')}")
        return default

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        logger.warning(f"Invalid time format: {value!r}, using {default.strftime('%H:%M')}")
        return default
    return time(hour, minute)


def break_duration(session_minutes: int) -> int:
    """Break after a session, scaled by session length."""
    for upper, minutes in BREAK_TABLE:
        if session_minutes <= upper:
            return minutes
    return LONG_SESSION_BREAK


def energy_level_at(moment: datetime, settings: UserSettings) -> EnergyLevel:
    """
    Energy level for a moment of the day.

    Follows a fixed curve anchored on the user's morning and afternoon levels:
    ramp-up before 8, morning peak until 11, pre-lunch dip, lunch trough,
    post-lunch recovery, afternoon peak 14-16, decline until 18, then LOW.
    """
    morning = settings.morning_energy_level or EnergyLevel.HIGH
    afternoon = settings.afternoon_energy_level or EnergyLevel.MEDIUM
    minutes = moment.hour * 60 + moment.minute

    if minutes < 8 * 60:
        return _ONE_LEVEL_DOWN[morning]
    if minutes < 11 * 60:
        return morning
    if minutes < 12 * 60:
        return _ONE_LEVEL_DOWN[morning]
    if minutes < 13 * 60:
        return EnergyLevel.LOW
    if minutes < 14 * 60:
        return _ONE_LEVEL_DOWN[afternoon]
    if minutes < 16 * 60:
        return afternoon
    if minutes < 18 * 60:
        return _ONE_LEVEL_DOWN[afternoon]
    return EnergyLevel.LOW


def preferred_focus_types(energy_level: EnergyLevel, hour: int) -> list[FocusType]:
    """Focus types that suit an energy level at a given hour."""
    threshold, before, after = FOCUS_TABLE[energy_level]
    return list(before if hour < threshold else after)


def generate_time_slots(
    target_date: date,
    settings: UserSettings,
    commitments: list[TimeSlot] | None = None,
    tz: tzinfo | None = None,
) -> list[TimeSlot]:
    """
    Cut the work window into focus sessions separated by breaks.

    Pure function - no I/O.

    Args:
        target_date: Day to plan
        settings: Work window, session length and energy preferences
        commitments: Calendar events; slots overlapping any of them are dropped
        tz: Timezone for the work window (naive datetimes when None)

    Returns:
        Available TimeSlots in chronological order
    """
    commitments = commitments or []
    work_start = parse_work_time(settings.work_start_time, DEFAULT_WORK_START)
    work_end = parse_work_time(settings.work_end_time, DEFAULT_WORK_END)

    session = settings.focus_session_length
    if not session or session <= 0:
        session = DEFAULT_SESSION_MINUTES
    session_delta = timedelta(minutes=session)
    break_delta = timedelta(minutes=break_duration(session))

    current = datetime.combine(target_date, work_start, tzinfo=tz)
    day_end = datetime.combine(target_date, work_end, tzinfo=tz)

    slots = []
    while current < day_end:
        slot_end = current + session_delta
        if slot_end <= day_end:
            energy = energy_level_at(current, settings)
            slot = TimeSlot(
                start=current,
                end=slot_end,
                energy_level=energy,
                preferred_focus_types=preferred_focus_types(energy, current.hour),
            )
            slot.is_available = not any(slot.overlaps(c) for c in commitments)
            slots.append(slot)
        current = slot_end + break_delta

    available = [s for s in slots if s.is_available]
    logger.info(f"Generated {len(slots)} total slots, {len(available)} available")
    return available
