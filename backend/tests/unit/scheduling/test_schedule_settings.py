# backend/tests/unit/scheduling/test_schedule_settings.py
"""Unit tests for per-mentor schedule settings."""

import pytest

from mentorhub.core.exceptions import ScheduleValidationException
from mentorhub.domain.settings import ScheduleSettings, default_settings


def test_defaults_are_valid():
    settings = ScheduleSettings()
    assert settings.validate() == []
    assert settings.timezone == "UTC"
    assert settings.default_session_duration_minutes == 60
    assert settings.buffer_minutes_between_sessions == 15


def test_default_settings_takes_timezone():
    assert default_settings("Europe/Berlin").timezone == "Europe/Berlin"
    assert default_settings().timezone == "UTC"


@pytest.mark.parametrize(
    "overrides,fragment",
    [
        ({"timezone": "Mars/Olympus"}, "Unknown timezone"),
        ({"default_session_duration_minutes": 10}, "Session duration"),
        ({"default_session_duration_minutes": 241}, "Session duration"),
        ({"buffer_minutes_between_sessions": 61}, "Buffer time"),
        ({"min_advance_booking_hours": 169}, "Minimum advance booking"),
        ({"max_advance_booking_days": 0}, "Maximum advance booking"),
        ({"max_advance_booking_days": 366}, "Maximum advance booking"),
        ({"default_start_time": "9am"}, "Default start time"),
        ({"allowed_session_durations": (30, 300)}, "Allowed session duration"),
    ],
)
def test_out_of_range_values(overrides, fragment):
    errors = ScheduleSettings(**overrides).validate()
    assert len(errors) == 1
    assert fragment in errors[0]


def test_end_must_follow_start():
    errors = ScheduleSettings(default_start_time="17:00", default_end_time="09:00").validate()
    assert errors == ["Default end time must be after default start time"]


def test_end_of_day_is_a_valid_default_end():
    assert ScheduleSettings(default_end_time="24:00").validate() == []


def test_all_errors_reported_together():
    settings = ScheduleSettings(
        timezone="Nowhere", buffer_minutes_between_sessions=-5, max_advance_booking_days=500
    )
    assert len(settings.validate()) == 3


class TestConfirmation:
    def test_instant_booking_needs_no_confirmation(self):
        assert not ScheduleSettings().needs_confirmation

    def test_require_confirmation(self):
        assert ScheduleSettings(require_confirmation=True).needs_confirmation

    def test_instant_booking_disabled_means_confirmation(self):
        assert ScheduleSettings(allow_instant_booking=False).needs_confirmation


def test_permitted_durations_include_default_once():
    settings = ScheduleSettings(allowed_session_durations=(90, 30, 60))
    assert settings.permitted_durations == (30, 60, 90)


class TestWithUpdates:
    def test_partial_update_keeps_other_fields(self):
        updated = ScheduleSettings().with_updates({"buffer_minutes_between_sessions": 5})
        assert updated.buffer_minutes_between_sessions == 5
        assert updated.default_session_duration_minutes == 60

    def test_none_and_unknown_keys_ignored(self):
        original = ScheduleSettings()
        updated = original.with_updates({"timezone": None, "color": "blue"})
        assert updated == original

    def test_list_durations_become_tuple(self):
        updated = ScheduleSettings().with_updates({"allowed_session_durations": [30, 45]})
        assert updated.allowed_session_durations == (30, 45)

    def test_invalid_update_raises_and_original_unchanged(self):
        original = ScheduleSettings()
        with pytest.raises(ScheduleValidationException) as exc_info:
            original.with_updates({"timezone": "Bad/Zone"})
        assert exc_info.value.message == "Invalid schedule settings"
        assert original.timezone == "UTC"
