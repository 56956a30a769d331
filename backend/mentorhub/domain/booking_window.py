"""
Booking window policy.

Comparisons are between absolute instants. Minimum notice is a number of
hours, so it is a fixed timedelta; maximum advance is a number of calendar
days in the mentor's timezone, so it follows DST shifts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from ..core.enums import BookingStatus
from ..core.exceptions import BookingWindowViolation, SlotNotAvailable
from ..core.timezone_utils import add_calendar_days, ensure_aware, to_timezone
from .settings import ScheduleSettings


@dataclass(frozen=True)
class BookingWindow:
    earliest: datetime
    latest: datetime

    def admits(self, slot_start: datetime) -> bool:
        """Both bounds inclusive."""
        return self.earliest <= ensure_aware(slot_start) <= self.latest

    def localized(self, tz_name: str) -> "BookingWindow":
        return BookingWindow(to_timezone(self.earliest, tz_name), to_timezone(self.latest, tz_name))


@dataclass(frozen=True)
class ExistingBooking:
    start: datetime
    end: datetime
    status: BookingStatus = BookingStatus.CONFIRMED
    id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    def same_slot(self, start: datetime, end: datetime) -> bool:
        return ensure_aware(self.start) == start and ensure_aware(self.end) == end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return ensure_aware(self.start) < end and ensure_aware(self.end) > start


@dataclass(frozen=True)
class BookingDecision:
    start: datetime
    end: datetime
    status: BookingStatus
    capacity: int
    booked_count: int
    window: BookingWindow

    @property
    def remaining_capacity(self) -> int:
        return self.capacity - self.booked_count - 1


class BookingWindowPolicy:
    """Checks a requested slot against one mentor's settings."""

    def __init__(self, settings: ScheduleSettings) -> None:
        self.settings = settings

    def admissible_range(self, now: datetime) -> BookingWindow:
        now = ensure_aware(now)
        return BookingWindow(
            earliest=now + timedelta(hours=self.settings.min_advance_booking_hours),
            latest=add_calendar_days(now, self.settings.max_advance_booking_days, self.settings.timezone),
        )

    def initial_status(self) -> BookingStatus:
        if self.settings.needs_confirmation:
            return BookingStatus.PENDING
        return BookingStatus.CONFIRMED

    def check_window(self, start: datetime, end: datetime, now: datetime) -> BookingWindow:
        """
        Raises:
            BookingWindowViolation: If the slot is malformed, starts outside the
                window, or has a duration the mentor does not offer
        """
        start, end = ensure_aware(start), ensure_aware(end)
        window = self.admissible_range(now)
        local_window = window.localized(self.settings.timezone)

        if end <= start:
            raise BookingWindowViolation(
                "Session end must be after its start", reason="invalid_range"
            )
        if start < window.earliest:
            raise BookingWindowViolation(
                f"Sessions must be booked at least {self.settings.min_advance_booking_hours} "
                f"hours in advance",
                earliest=local_window.earliest,
                latest=local_window.latest,
                reason="too_soon",
            )
        if start > window.latest:
            raise BookingWindowViolation(
                f"Sessions can be booked at most {self.settings.max_advance_booking_days} "
                f"days in advance",
                earliest=local_window.earliest,
                latest=local_window.latest,
                reason="too_far",
            )

        duration = int((end - start).total_seconds() // 60)
        if (end - start) != timedelta(minutes=duration) or duration not in self.settings.permitted_durations:
            allowed = ", ".join(str(d) for d in self.settings.permitted_durations)
            raise BookingWindowViolation(
                f"Session length must be one of: {allowed} minutes",
                earliest=local_window.earliest,
                latest=local_window.latest,
                reason="duration",
            )
        return window

    def check_conflicts(
        self,
        start: datetime,
        end: datetime,
        capacity: int,
        existing: Iterable[ExistingBooking],
    ) -> int:
        """
        Apply capacity and buffer rules against existing bookings.

        Bookings of exactly the same slot share it up to ``capacity``. Any
        other active booking must end at least the buffer before ``start`` and
        begin at least the buffer after ``end``.

        Returns:
            Number of active bookings already holding this exact slot

        Raises:
            SlotNotAvailable: If the slot is full or too close to another booking
        """
        start, end = ensure_aware(start), ensure_aware(end)
        buffer = timedelta(minutes=self.settings.buffer_minutes_between_sessions)
        active: List[ExistingBooking] = [b for b in existing if b.is_active]

        same_slot = [b for b in active if b.same_slot(start, end)]
        if len(same_slot) >= capacity:
            raise SlotNotAvailable("This time slot is fully booked", reason="fully_booked")

        for booking in active:
            if booking.same_slot(start, end):
                continue
            if booking.overlaps(start - buffer, end + buffer):
                raise SlotNotAvailable(
                    "This time conflicts with another session or its buffer time",
                    reason="booking_conflict",
                )
        return len(same_slot)
