# backend/tests/unit/scheduling/test_schedule_aggregate.py
"""
Unit tests for the schedule aggregate.

Covers how a date's availability is resolved and the order in which
booking checks are applied.
"""

from datetime import date, datetime

import pytest
import pytz

from mentorhub.core.enums import AvailabilitySource, BlockType, BookingStatus
from mentorhub.core.exceptions import (
    BookingWindowViolation,
    MentorUnavailable,
    SlotNotAvailable,
)
from mentorhub.domain.booking_window import ExistingBooking
from mentorhub.domain.schedule import Schedule, day_of_week
from tests.helpers.schedule_builders import FIXED_NOW, block, schedule_with

UTC = pytz.UTC
WEDNESDAY = date(2025, 3, 5)
SATURDAY = date(2025, 3, 8)


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 3, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def schedule() -> Schedule:
    return Schedule.default("mentor-1")


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2025, 3, 2)) == 0
    assert day_of_week(WEDNESDAY) == 3
    assert day_of_week(SATURDAY) == 6


class TestDescribeDay:
    def test_weekly_pattern(self, schedule):
        described = schedule.describe_day(WEDNESDAY)
        assert described.source == AvailabilitySource.WEEKLY
        assert len(described.blocks) == 3

    def test_disabled_day(self, schedule):
        described = schedule.describe_day(SATURDAY)
        assert described.source == AvailabilitySource.DISABLED
        assert described.blocks == ()

    def test_inactive_schedule_has_nothing(self, schedule):
        schedule.update_settings({"is_active": False})
        assert schedule.describe_day(WEDNESDAY).source == AvailabilitySource.INACTIVE
        assert schedule.effective_availability(WEDNESDAY) == []

    def test_exception_replaces_weekly_pattern(self, schedule):
        exc = schedule.exceptions.create(
            WEDNESDAY,
            WEDNESDAY,
            BlockType.AVAILABLE,
            is_full_day=False,
            time_blocks=[block("14:00", "15:00")],
        )
        described = schedule.describe_day(WEDNESDAY)
        assert described.source == AvailabilitySource.EXCEPTION
        assert described.exception is exc
        assert [(b.start_time, b.end_time) for b in described.blocks] == [("14:00", "15:00")]

    def test_exception_applies_on_disabled_day(self, schedule):
        schedule.exceptions.create(SATURDAY, SATURDAY, BlockType.AVAILABLE)
        blocks = schedule.effective_availability(SATURDAY)
        assert [(b.start_time, b.end_time) for b in blocks] == [("00:00", "24:00")]

    def test_full_day_block_empties_day(self, schedule):
        schedule.exceptions.create(WEDNESDAY, WEDNESDAY)
        assert schedule.effective_availability(WEDNESDAY) == []

    def test_bookable_blocks_cut_out_breaks(self, schedule):
        spans = [(b.start_time, b.end_time) for b in schedule.bookable_blocks(WEDNESDAY)]
        assert spans == [("09:00", "12:00"), ("13:00", "17:00")]


class TestEvaluateBooking:
    def test_confirmed_when_instant(self, schedule):
        decision = schedule.evaluate_booking(_at(5, 10), _at(5, 11), FIXED_NOW)
        assert decision.status == BookingStatus.CONFIRMED
        assert decision.capacity == 1
        assert decision.remaining_capacity == 0

    def test_pending_when_confirmation_required(self, schedule):
        schedule.update_settings({"require_confirmation": True})
        decision = schedule.evaluate_booking(_at(5, 10), _at(5, 11), FIXED_NOW)
        assert decision.status == BookingStatus.PENDING

    def test_inactive_checked_first(self, schedule):
        schedule.update_settings({"is_active": False})
        with pytest.raises(MentorUnavailable):
            schedule.evaluate_booking(_at(3, 13), _at(3, 13, 10), FIXED_NOW)

    def test_window_checked_before_coverage(self, schedule):
        # Saturday is disabled, but a week's notice makes it too soon as well
        schedule.update_settings({"min_advance_booking_hours": 168})
        with pytest.raises(BookingWindowViolation) as exc_info:
            schedule.evaluate_booking(_at(8, 10), _at(8, 11), FIXED_NOW)
        assert exc_info.value.details["reason"] == "too_soon"

    def test_day_disabled(self, schedule):
        with pytest.raises(SlotNotAvailable) as exc_info:
            schedule.evaluate_booking(_at(8, 10), _at(8, 11), FIXED_NOW)
        assert exc_info.value.details["reason"] == "day_disabled"

    def test_blocked_by_exception(self, schedule):
        schedule.exceptions.create(WEDNESDAY, WEDNESDAY, reason="Dentist")
        with pytest.raises(SlotNotAvailable) as exc_info:
            schedule.evaluate_booking(_at(5, 10), _at(5, 11), FIXED_NOW)
        assert exc_info.value.details["reason"] == "exception"

    def test_break_is_not_bookable(self, schedule):
        with pytest.raises(SlotNotAvailable) as exc_info:
            schedule.evaluate_booking(_at(5, 11, 30), _at(5, 12, 30), FIXED_NOW)
        assert exc_info.value.details["reason"] == "no_coverage"

    def test_conflicts_checked_last(self, schedule):
        existing = [ExistingBooking(_at(5, 10), _at(5, 11))]
        with pytest.raises(SlotNotAvailable) as exc_info:
            schedule.evaluate_booking(_at(5, 10), _at(5, 11), FIXED_NOW, existing)
        assert exc_info.value.details["reason"] == "fully_booked"

    def test_group_block_capacity(self):
        schedule = schedule_with([3], [block("09:00", "12:00", max_bookings=3)])
        existing = [ExistingBooking(_at(5, 10), _at(5, 11))] * 2
        decision = schedule.evaluate_booking(_at(5, 10), _at(5, 11), FIXED_NOW, existing)
        assert decision.booked_count == 2
        assert decision.remaining_capacity == 0

    def test_slot_evaluated_in_mentor_timezone(self):
        # 09:00-10:00 in New York is 14:00-15:00 UTC in March before DST
        schedule = schedule_with([3], [block("09:00", "10:00")], timezone="America/New_York")
        schedule.evaluate_booking(_at(5, 14), _at(5, 15), FIXED_NOW)
        with pytest.raises(SlotNotAvailable):
            schedule.evaluate_booking(_at(5, 9), _at(5, 10), FIXED_NOW)

    def test_session_may_end_at_midnight(self):
        schedule = schedule_with([3], [block("22:00", "24:00")])
        decision = schedule.evaluate_booking(_at(5, 23), _at(6, 0), FIXED_NOW)
        assert decision.end == _at(6, 0)

    def test_session_spanning_days_rejected(self):
        schedule = schedule_with([3, 4], [block("00:00", "24:00")])
        with pytest.raises(SlotNotAvailable) as exc_info:
            schedule.evaluate_booking(_at(5, 23, 30), _at(6, 0, 30), FIXED_NOW)
        assert exc_info.value.details["reason"] == "spans_days"


def test_copy_does_not_share_state(schedule):
    clone = schedule.copy()
    clone.weekly.set_enabled(3, False)
    clone.exceptions.create(WEDNESDAY, WEDNESDAY)
    assert schedule.weekly.get_pattern(3).is_enabled
    assert schedule.exceptions.exceptions() == []
