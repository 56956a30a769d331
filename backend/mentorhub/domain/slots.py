"""Bookable slot generation over a date range."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from ..core.timezone_utils import localize_wall_clock, to_timezone
from .booking_window import ExistingBooking
from .schedule import Schedule

REASON_ALREADY_BOOKED = "Already booked"
REASON_FULLY_BOOKED = "Fully booked"


@dataclass(frozen=True)
class Slot:
    date: date
    start: datetime
    end: datetime
    is_available: bool
    remaining_capacity: int
    reason: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def generate_slots(
    schedule: Schedule,
    start_date: date,
    end_date: date,
    now: datetime,
    duration_minutes: Optional[int] = None,
    existing: Iterable[ExistingBooking] = (),
    step_minutes: int = 30,
    output_timezone: Optional[str] = None,
) -> List[Slot]:
    """
    Candidate slots for every date in ``[start_date, end_date]``.

    Candidates start every ``step_minutes`` from the start of each bookable
    block and must fit inside it. Slots outside the booking window are
    dropped; slots that clash with existing bookings are returned with
    ``is_available`` False and a reason.
    """
    if not schedule.settings.is_active or start_date > end_date:
        return []

    duration = duration_minutes or schedule.settings.default_session_duration_minutes
    tz_name = schedule.timezone
    policy = schedule.booking_policy()
    window = policy.admissible_range(now)
    buffer = timedelta(minutes=schedule.settings.buffer_minutes_between_sessions)
    active = [b for b in existing if b.is_active]
    slots: List[Slot] = []

    for day in iter_dates(start_date, end_date):
        for block in schedule.bookable_blocks(day):
            minute = block.start_minute
            while minute + duration <= block.end_minute:
                start = localize_wall_clock(day, minute, tz_name)
                end = localize_wall_clock(day, minute + duration, tz_name)
                minute += step_minutes
                if not window.admits(start) or end - start != timedelta(minutes=duration):
                    continue

                same_slot = sum(1 for b in active if b.same_slot(start, end))
                clashes = any(
                    b.overlaps(start - buffer, end + buffer)
                    for b in active
                    if not b.same_slot(start, end)
                )
                reason = None
                if same_slot >= block.capacity:
                    reason = REASON_FULLY_BOOKED if block.capacity > 1 else REASON_ALREADY_BOOKED
                elif clashes:
                    reason = REASON_ALREADY_BOOKED

                if output_timezone:
                    start, end = to_timezone(start, output_timezone), to_timezone(end, output_timezone)
                slots.append(
                    Slot(
                        date=day,
                        start=start,
                        end=end,
                        is_available=reason is None,
                        remaining_capacity=0 if reason else block.capacity - same_slot,
                        reason=reason,
                    )
                )
    return slots
