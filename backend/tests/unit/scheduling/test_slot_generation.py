# backend/tests/unit/scheduling/test_slot_generation.py
"""Unit tests for bookable slot generation."""

from datetime import date, datetime, timedelta

import pytz

from mentorhub.domain.booking_window import ExistingBooking
from mentorhub.domain.schedule import Schedule
from mentorhub.domain.slots import (
    REASON_ALREADY_BOOKED,
    REASON_FULLY_BOOKED,
    generate_slots,
    iter_dates,
)
from tests.helpers.schedule_builders import FIXED_NOW, block, schedule_with

UTC = pytz.UTC
TUESDAY = date(2025, 3, 4)
WEDNESDAY = date(2025, 3, 5)


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 3, day, hour, minute, tzinfo=UTC)


def _starts(slots):
    return [s.start.strftime("%H:%M") for s in slots]


def test_iter_dates_is_inclusive():
    assert list(iter_dates(TUESDAY, WEDNESDAY)) == [TUESDAY, WEDNESDAY]
    assert list(iter_dates(WEDNESDAY, TUESDAY)) == []


def test_candidates_step_through_each_bookable_block():
    slots = generate_slots(Schedule.default("mentor-1"), WEDNESDAY, WEDNESDAY, FIXED_NOW)
    assert _starts(slots) == [
        "09:00", "09:30", "10:00", "10:30", "11:00",
        "13:00", "13:30", "14:00", "14:30", "15:00", "15:30", "16:00",
    ]
    assert all(s.is_available and s.duration_minutes == 60 for s in slots)


def test_slots_before_min_notice_are_dropped():
    slots = generate_slots(Schedule.default("mentor-1"), TUESDAY, TUESDAY, FIXED_NOW)
    assert _starts(slots)[0] == "13:00"


def test_custom_duration_and_step():
    schedule = schedule_with([3], [block("09:00", "10:00")])
    slots = generate_slots(schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW, 30, step_minutes=15)
    assert _starts(slots) == ["09:00", "09:15", "09:30"]


def test_booked_slot_and_buffer_neighbours_are_flagged():
    existing = [ExistingBooking(_at(5, 10), _at(5, 11))]
    slots = generate_slots(
        Schedule.default("mentor-1"), WEDNESDAY, WEDNESDAY, FIXED_NOW, existing=existing
    )
    morning = [s for s in slots if s.start.hour < 12]
    assert morning and all(s.reason == REASON_ALREADY_BOOKED for s in morning)
    assert all(s.remaining_capacity == 0 for s in morning)
    afternoon = [s for s in slots if s.start.hour >= 13]
    assert all(s.is_available for s in afternoon)


def test_group_block_reports_remaining_capacity():
    schedule = schedule_with(
        [3], [block("10:00", "11:00", max_bookings=3)], buffer_minutes_between_sessions=0
    )
    existing = [ExistingBooking(_at(5, 10), _at(5, 11))]
    (slot,) = generate_slots(schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW, existing=existing)
    assert slot.is_available
    assert slot.remaining_capacity == 2

    full = generate_slots(schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW, existing=existing * 3)
    assert full[0].reason == REASON_FULLY_BOOKED


def test_output_timezone_converts_instants():
    schedule = schedule_with([3], [block("09:00", "10:00")])
    (slot,) = generate_slots(
        schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW, output_timezone="Asia/Tokyo"
    )
    assert slot.start.utcoffset() == timedelta(hours=9)
    assert slot.start == _at(5, 9)


def test_inactive_or_empty_range_gives_nothing():
    schedule = Schedule.default("mentor-1")
    assert generate_slots(schedule, WEDNESDAY, TUESDAY, FIXED_NOW) == []
    schedule.update_settings({"is_active": False})
    assert generate_slots(schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW) == []


def test_slots_use_mentor_local_wall_clock():
    schedule = schedule_with([3], [block("09:00", "10:00")], timezone="America/New_York")
    (slot,) = generate_slots(schedule, WEDNESDAY, WEDNESDAY, FIXED_NOW)
    assert slot.start.astimezone(UTC) == _at(5, 14)
    assert slot.date == WEDNESDAY


def test_spring_forward_gap_yields_no_short_slots():
    # 2025-03-09 02:00 to 03:00 does not exist in New York
    sunday = date(2025, 3, 9)
    schedule = schedule_with([0], [block("00:00", "06:00")], timezone="America/New_York")
    slots = generate_slots(schedule, sunday, sunday, FIXED_NOW)
    assert all(s.duration_minutes == 60 for s in slots)
    assert [s.start.astimezone(UTC).strftime("%H:%M") for s in slots] == [
        "05:00", "05:30", "06:00", "06:30", "07:00", "07:30", "08:00", "08:30", "09:00",
    ]
