# backend/mentorhub/services/booking_service.py
"""
Booking Service for the MentorHub platform

Mentee-facing side of availability: listing bookable slots and turning a
slot request into a pending or confirmed session. All checks go through
the schedule aggregate so exception precedence, booking window, capacity
and buffer rules are applied the same way for listing and booking.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    BookingWindowViolation,
    MentorUnavailable,
    ScheduleValidationException,
    SlotNotAvailable,
)
from ..core.timezone_utils import ensure_aware, is_valid_timezone, localize_wall_clock, now_utc
from ..domain.slots import Slot, generate_slots
from ..models.booking import MentorSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.booking_repository import BookingRepository, to_existing_booking
from .base import BaseService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """Service layer for slot listing and booking requests."""

    def __init__(
        self,
        db: Session,
        availability_repository: Optional[AvailabilityRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(db)
        self.availability_repository = availability_repository or AvailabilityRepository(db)
        self.booking_repository = booking_repository or BookingRepository(db)
        self.clock = clock

    @BaseService.measure_operation("get_bookable_slots")
    def get_bookable_slots(
        self,
        mentor_id: str,
        start_date: date,
        end_date: date,
        duration_minutes: Optional[int] = None,
        output_timezone: Optional[str] = None,
    ) -> List[Slot]:
        """
        Candidate slots between two dates (inclusive), in the booking window.

        Mentors without a saved schedule, or with an inactive one, have no
        slots.

        Raises:
            ScheduleValidationException: If the range is reversed or too long,
                the output timezone is unknown, or the duration is not offered
        """
        if output_timezone is not None and not is_valid_timezone(output_timezone):
            raise ScheduleValidationException(
                [f"Unknown timezone: {output_timezone}"], code="INVALID_TIMEZONE"
            )
        if end_date < start_date:
            raise ScheduleValidationException(
                ["End date must be on or after start date"], code="INVALID_DATE_RANGE"
            )
        span = (end_date - start_date).days + 1
        if span > settings.slot_search_max_days:
            raise ScheduleValidationException(
                [f"Date range cannot exceed {settings.slot_search_max_days} days"],
                code="INVALID_DATE_RANGE",
            )

        schedule = self.availability_repository.load_schedule(mentor_id)
        if schedule is None or not schedule.settings.is_active:
            return []
        if (
            duration_minutes is not None
            and duration_minutes not in schedule.settings.permitted_durations
        ):
            raise ScheduleValidationException(
                [f"Session length of {duration_minutes} minutes is not offered"],
                code="INVALID_DURATION",
            )

        buffer = timedelta(minutes=schedule.settings.buffer_minutes_between_sessions)
        range_start = localize_wall_clock(start_date, 0, schedule.timezone) - buffer
        range_end = localize_wall_clock(end_date, 24 * 60, schedule.timezone) + buffer
        existing = [
            to_existing_booking(row)
            for row in self.booking_repository.get_active_in_range(mentor_id, range_start, range_end)
        ]
        return generate_slots(
            schedule,
            start_date,
            end_date,
            now=self.clock(),
            duration_minutes=duration_minutes,
            existing=existing,
            step_minutes=settings.slot_step_minutes,
            output_timezone=output_timezone,
        )

    @BaseService.measure_operation("request_booking")
    def request_booking(
        self,
        mentor_id: str,
        mentee_id: str,
        start: datetime,
        end: datetime,
        notes: Optional[str] = None,
    ) -> MentorSession:
        """
        Book ``[start, end)`` with a mentor.

        Returns:
            The stored session, pending or confirmed per the mentor's settings

        Raises:
            MentorUnavailable: Mentor has no schedule or it is deactivated
            BookingWindowViolation: Outside the booking window or wrong length
            SlotNotAvailable: No coverage, full, or clashes with another session
        """
        start, end = ensure_aware(start), ensure_aware(end)
        self.log_operation("request_booking", mentor_id=mentor_id, start=start.isoformat())
        try:
            with self.transaction():
                schedule = self.availability_repository.load_schedule(mentor_id)
                if schedule is None:
                    raise MentorUnavailable(mentor_id)
                self.availability_repository.lock_schedule(schedule.id)

                buffer = timedelta(minutes=schedule.settings.buffer_minutes_between_sessions)
                existing = [
                    to_existing_booking(row)
                    for row in self.booking_repository.get_active_in_range(
                        mentor_id, start - buffer, end + buffer
                    )
                ]
                decision = schedule.evaluate_booking(start, end, self.clock(), existing)
                session = self.booking_repository.create_session(
                    mentor_id, mentee_id, decision.start, decision.end, decision.status, notes
                )
        except MentorUnavailable:
            prometheus_metrics.inc_booking_decision("inactive")
            raise
        except BookingWindowViolation:
            prometheus_metrics.inc_booking_decision("window")
            raise
        except SlotNotAvailable:
            prometheus_metrics.inc_booking_decision("unavailable")
            raise

        prometheus_metrics.inc_booking_decision(decision.status.value)
        self.logger.info(
            f"Booked session {session.id} for mentor {mentor_id} ({decision.status.value})"
        )
        return session
