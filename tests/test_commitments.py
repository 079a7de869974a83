"""Tests for calendar event parsing, inference and deduplication."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from dayplanner.core.commitments import (
    MalformedEventError,
    are_duplicates,
    deduplicate,
    infer_energy_level,
    infer_focus_types,
    parse_datetime,
    parse_google_event,
    parse_outlook_event,
)
from dayplanner.core.slots import TimeSlot
from dayplanner.core.tasks import EnergyLevel, FocusType

TORONTO = ZoneInfo("America/Toronto")


@pytest.fixture
def google_event():
    def _make(**overrides):
        event = {
            "id": "g1",
            "summary": "Team Standup",
            "description": "Daily sync",
            "start": {"dateTime": "2025-01-15T10:00:00-05:00"},
            "end": {"dateTime": "2025-01-15T10:30:00-05:00"},
            "attendees": [{"email": "a@x.com"}, {"email": "b@x.com"}],
        }
        event.update(overrides)
        return event

    return _make


@pytest.fixture
def outlook_event():
    def _make(**overrides):
        event = {
            "id": "o1",
            "subject": "Architecture review",
            "body": {"content": "Discuss the API"},
            "bodyPreview": "Discuss the API",
            "start": {"dateTime": "2025-01-15T15:00:00.0000000", "timeZone": "UTC"},
            "end": {"dateTime": "2025-01-15T16:00:00.0000000", "timeZone": "UTC"},
            "attendees": [{"emailAddress": {"address": "a@x.com"}}],
            "importance": "normal",
            "showAs": "busy",
            "categories": [],
            "isAllDay": False,
        }
        event.update(overrides)
        return event

    return _make


def slot(source, start, end):
    day = date(2025, 1, 15)
    return TimeSlot(
        start=datetime.combine(day, start),
        end=datetime.combine(day, end),
        is_available=False,
        source=source,
    )


class TestParseDatetime:
    def test_z_suffix(self):
        assert parse_datetime("2025-01-15T14:00:00Z").utcoffset() == timedelta(0)

    def test_seven_digit_fraction(self):
        assert parse_datetime("2025-01-15T14:00:00.1234567").microsecond == 123456


class TestInferEnergyLevel:
    def test_solo_event_is_high(self):
        assert infer_energy_level("Lunch", 0) == EnergyLevel.HIGH

    def test_focus_keyword_is_high(self):
        assert infer_energy_level("Deep Work block", 3) == EnergyLevel.HIGH

    def test_large_meeting_is_low(self):
        assert infer_energy_level("Quarterly sync", 9) == EnergyLevel.LOW

    def test_all_hands_is_low(self):
        assert infer_energy_level("All Hands", 3) == EnergyLevel.LOW

    def test_regular_meeting_is_medium(self):
        assert infer_energy_level("Sync with Dana", 3) == EnergyLevel.MEDIUM

    def test_outlook_signals(self):
        assert infer_energy_level("Sync", 3, importance="high") == EnergyLevel.HIGH
        assert infer_energy_level("Sync", 3, show_as="workingElsewhere") == EnergyLevel.HIGH
        assert infer_energy_level("Sync", 3, importance="low") == EnergyLevel.LOW
        assert infer_energy_level("Sync", 3, show_as="tentative") == EnergyLevel.LOW


class TestInferFocusTypes:
    def test_technical_keywords(self):
        assert infer_focus_types("Code review", 0) == [FocusType.TECHNICAL]

    def test_multiple_matches_in_table_order(self):
        assert infer_focus_types("Design review", 0) == [FocusType.TECHNICAL, FocusType.CREATIVE]

    def test_attendees_imply_social(self):
        assert infer_focus_types("Lunch", 2) == [FocusType.SOCIAL]

    def test_default_without_attendees_is_technical(self):
        assert infer_focus_types("Lunch", 0) == [FocusType.TECHNICAL]

    def test_word_boundaries(self):
        # "codec" must not match "code"
        assert infer_focus_types("codec", 0) == [FocusType.TECHNICAL]
        assert infer_focus_types("Shred paperwork", 0) == [FocusType.TECHNICAL]

    def test_categories(self):
        assert infer_focus_types("Lunch", 0, ["Admin tasks"]) == [FocusType.ADMINISTRATIVE]


class TestParseGoogleEvent:
    def test_timed_event(self, google_event):
        parsed = parse_google_event(google_event(), TORONTO)

        assert parsed.start == datetime(2025, 1, 15, 10, tzinfo=TORONTO)
        assert parsed.end == datetime(2025, 1, 15, 10, 30, tzinfo=TORONTO)
        assert parsed.source == "google"
        assert parsed.event_id == "g1"
        assert parsed.title == "Team Standup"
        assert parsed.is_available is False
        assert parsed.is_all_day is False
        assert parsed.energy_level == EnergyLevel.MEDIUM
        assert parsed.preferred_focus_types == [FocusType.SOCIAL]

    def test_converts_to_target_timezone(self, google_event):
        event = google_event(
            start={"dateTime": "2025-01-15T15:00:00Z"},
            end={"dateTime": "2025-01-15T16:00:00Z"},
        )
        parsed = parse_google_event(event, TORONTO)

        assert parsed.start.tzinfo == TORONTO
        assert parsed.start.hour == 10

    def test_all_day_event_covers_the_day(self, google_event):
        event = google_event(start={"date": "2025-01-15"}, end={"date": "2025-01-16"})
        parsed = parse_google_event(event, TORONTO)

        assert parsed.is_all_day is True
        assert parsed.start == datetime(2025, 1, 15, 0, 0, tzinfo=TORONTO)
        assert parsed.end == datetime(2025, 1, 15, 23, 59, 59, 999000, tzinfo=TORONTO)

    def test_multi_day_event_ends_on_last_day(self, google_event):
        event = google_event(start={"date": "2025-01-15"}, end={"date": "2025-01-18"})
        parsed = parse_google_event(event, TORONTO)

        assert parsed.end.date() == date(2025, 1, 17)

    def test_untitled_event(self, google_event):
        event = google_event()
        del event["summary"]
        assert parse_google_event(event).title == "Untitled Event"

    def test_missing_end_is_malformed(self, google_event):
        event = google_event()
        del event["end"]
        with pytest.raises(MalformedEventError):
            parse_google_event(event)

    def test_garbage_timestamp_is_malformed(self, google_event):
        with pytest.raises(MalformedEventError):
            parse_google_event(google_event(start={"dateTime": "not a date"}))

    def test_mixed_formats_are_malformed(self, google_event):
        with pytest.raises(MalformedEventError):
            parse_google_event(google_event(start={"date": "2025-01-15"}))

    def test_end_before_start_is_malformed(self, google_event):
        event = google_event(
            start={"dateTime": "2025-01-15T11:00:00-05:00"},
            end={"dateTime": "2025-01-15T10:00:00-05:00"},
        )
        with pytest.raises(MalformedEventError):
            parse_google_event(event)

    def test_non_string_title_is_malformed(self, google_event):
        with pytest.raises(MalformedEventError):
            parse_google_event(google_event(summary=12345))

    @pytest.mark.parametrize("item", [None, "event", ["g1"]])
    def test_non_object_is_malformed(self, item):
        with pytest.raises(MalformedEventError):
            parse_google_event(item)


class TestParseOutlookEvent:
    def test_timed_event_uses_event_timezone(self, outlook_event):
        parsed = parse_outlook_event(outlook_event(), TORONTO)

        assert parsed.start == datetime(2025, 1, 15, 10, tzinfo=TORONTO)
        assert parsed.end == datetime(2025, 1, 15, 11, tzinfo=TORONTO)
        assert parsed.source == "outlook"
        assert parsed.title == "Architecture review"
        assert parsed.description == "Discuss the API"
        assert FocusType.TECHNICAL in parsed.preferred_focus_types

    def test_naive_time_without_zone_uses_target_timezone(self, outlook_event):
        event = outlook_event(
            start={"dateTime": "2025-01-15T10:00:00.0000000"},
            end={"dateTime": "2025-01-15T11:00:00.0000000"},
        )
        parsed = parse_outlook_event(event, TORONTO)

        assert parsed.start == datetime(2025, 1, 15, 10, tzinfo=TORONTO)

    def test_all_day(self, outlook_event):
        event = outlook_event(
            isAllDay=True,
            start={"dateTime": "2025-01-15T00:00:00.0000000", "timeZone": "UTC"},
            end={"dateTime": "2025-01-16T00:00:00.0000000", "timeZone": "UTC"},
        )
        parsed = parse_outlook_event(event, TORONTO)

        assert parsed.is_all_day is True
        assert parsed.start == datetime(2025, 1, 15, tzinfo=TORONTO)
        assert parsed.end == datetime(2025, 1, 15, 23, 59, 59, 999000, tzinfo=TORONTO)

    def test_importance_drives_energy(self, outlook_event):
        parsed = parse_outlook_event(outlook_event(subject="Sync", importance="low"), TORONTO)
        assert parsed.energy_level == EnergyLevel.LOW

    def test_missing_start_is_malformed(self, outlook_event):
        event = outlook_event()
        del event["start"]
        with pytest.raises(MalformedEventError):
            parse_outlook_event(event)

    def test_string_body_is_malformed(self, outlook_event):
        with pytest.raises(MalformedEventError):
            parse_outlook_event(outlook_event(body="plain string body"))

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedEventError):
            parse_outlook_event(None)


class TestDeduplicate:
    def test_within_tolerance_across_providers(self):
        a = slot("google", time(10), time(11))
        b = slot("outlook", time(10, 5), time(11, 5))
        assert are_duplicates(a, b)
        assert deduplicate([a, b]) == [a]

    def test_outside_tolerance_kept(self):
        a = slot("google", time(10), time(11))
        b = slot("outlook", time(10, 6), time(11, 6))
        assert deduplicate([a, b]) == [a, b]

    def test_same_provider_never_deduplicated(self):
        a = slot("google", time(10), time(11))
        b = slot("google", time(10), time(11))
        assert deduplicate([a, b]) == [a, b]

    def test_end_must_also_match(self):
        a = slot("google", time(10), time(11))
        b = slot("outlook", time(10), time(12))
        assert not are_duplicates(a, b)

    def test_keeps_first_occurrence(self):
        a = slot("outlook", time(10), time(11))
        b = slot("google", time(10, 2), time(11))
        assert deduplicate([a, b])[0].source == "outlook"

    def test_empty(self):
        assert deduplicate([]) == []
