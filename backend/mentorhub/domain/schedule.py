"""
Schedule aggregate: settings, weekly patterns and exceptions for one mentor.

``effective_availability`` is the single read path used by slot generation,
booking checks and display. It is total: it returns a list for every date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..core.enums import AvailabilitySource, ExceptionOverlapPolicy
from ..core.exceptions import MentorUnavailable, SlotNotAvailable
from ..core.timezone_utils import ensure_aware, local_date_and_minutes
from .booking_window import BookingDecision, BookingWindowPolicy, ExistingBooking
from .date_exceptions import AvailabilityException, ExceptionResolver
from .normalization import bookable_coverage
from .settings import ScheduleSettings
from .time_blocks import TimeBlock
from .weekly_patterns import WeeklyPattern, WeeklyPatternStore, build_default_patterns


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class DayAvailability:
    date: date
    source: AvailabilitySource
    blocks: Tuple[TimeBlock, ...]
    exception: Optional[AvailabilityException] = None


class Schedule:
    """Aggregate root. Mutate through ``weekly``/``exceptions``/``update_settings``."""

    def __init__(
        self,
        mentor_id: str,
        settings: Optional[ScheduleSettings] = None,
        weekly: Optional[WeeklyPatternStore] = None,
        exceptions: Optional[ExceptionResolver] = None,
        *,
        id: Optional[str] = None,
        version: int = 0,
    ) -> None:
        self.mentor_id = mentor_id
        self.id = id
        self.version = version
        self.settings = settings or ScheduleSettings()
        self.weekly = weekly or WeeklyPatternStore()
        self.exceptions = exceptions or ExceptionResolver()

    @classmethod
    def default(
        cls,
        mentor_id: str,
        timezone: Optional[str] = None,
        overlap_policy: ExceptionOverlapPolicy = ExceptionOverlapPolicy.REJECT,
    ) -> "Schedule":
        """Mon-Fri 09:00-17:00 with a lunch break, weekends off."""
        return cls(
            mentor_id,
            ScheduleSettings(timezone=timezone or "UTC"),
            WeeklyPatternStore(build_default_patterns().values()),
            ExceptionResolver(overlap_policy=overlap_policy),
        )

    @property
    def timezone(self) -> str:
        return self.settings.timezone

    def update_settings(self, updates: Mapping[str, Any]) -> ScheduleSettings:
        self.settings = self.settings.with_updates(updates)
        return self.settings

    def replace_weekly_patterns(self, patterns: Iterable[WeeklyPattern]) -> None:
        self.weekly.replace_all(patterns)

    def describe_day(self, day: date) -> DayAvailability:
        if not self.settings.is_active:
            return DayAvailability(day, AvailabilitySource.INACTIVE, ())

        exception = self.exceptions.resolve(day)
        if exception is not None:
            return DayAvailability(
                day, AvailabilitySource.EXCEPTION, tuple(exception.effective_blocks()), exception
            )

        pattern = self.weekly.get_pattern(day_of_week(day))
        if not pattern.is_enabled:
            return DayAvailability(day, AvailabilitySource.DISABLED, ())
        return DayAvailability(day, AvailabilitySource.WEEKLY, pattern.time_blocks)

    def effective_availability(self, day: date) -> List[TimeBlock]:
        return list(self.describe_day(day).blocks)

    def bookable_blocks(self, day: date) -> List[TimeBlock]:
        """AVAILABLE coverage for ``day`` with breaks, buffers and blocks cut out."""
        return bookable_coverage(self.effective_availability(day))

    def booking_policy(self) -> BookingWindowPolicy:
        return BookingWindowPolicy(self.settings)

    def _local_span(self, start: datetime, end: datetime) -> Tuple[date, int, int]:
        start_day, start_minute = local_date_and_minutes(start, self.timezone)
        end_day, end_minute = local_date_and_minutes(end, self.timezone)
        if end_day == start_day + timedelta(days=1) and end_minute == 0:
            end_minute = 24 * 60
        elif end_day != start_day:
            raise SlotNotAvailable("Sessions cannot span multiple days", reason="spans_days")
        return start_day, start_minute, end_minute

    def evaluate_booking(
        self,
        start: datetime,
        end: datetime,
        now: datetime,
        existing: Iterable[ExistingBooking] = (),
    ) -> BookingDecision:
        """
        Decide whether a mentee may book ``[start, end)``.

        Checks run in order: mentor active, booking window and duration,
        effective coverage for the local date, then capacity and buffers.

        Raises:
            MentorUnavailable: If the schedule is deactivated
            BookingWindowViolation: If the slot is outside the window
            SlotNotAvailable: If no AVAILABLE block covers the slot or it is taken
        """
        if not self.settings.is_active:
            raise MentorUnavailable(self.mentor_id)

        start, end = ensure_aware(start), ensure_aware(end)
        policy = self.booking_policy()
        window = policy.check_window(start, end, now)

        local_day, start_minute, end_minute = self._local_span(start, end)
        described = self.describe_day(local_day)
        covering = next(
            (b for b in bookable_coverage(described.blocks) if b.covers(start_minute, end_minute)),
            None,
        )
        if covering is None:
            if described.source == AvailabilitySource.DISABLED:
                raise SlotNotAvailable(
                    "The mentor does not take sessions on this day", reason="day_disabled"
                )
            if described.source == AvailabilitySource.EXCEPTION and not described.blocks:
                raise SlotNotAvailable("The mentor is unavailable on this date", reason="exception")
            raise SlotNotAvailable()

        booked = policy.check_conflicts(start, end, covering.capacity, existing)
        return BookingDecision(
            start=start,
            end=end,
            status=policy.initial_status(),
            capacity=covering.capacity,
            booked_count=booked,
            window=window,
        )

    def copy(self) -> "Schedule":
        """Independent working copy; mutate it and swap on success."""
        return Schedule(
            self.mentor_id,
            self.settings,
            self.weekly.copy(),
            self.exceptions.copy(),
            id=self.id,
            version=self.version,
        )
