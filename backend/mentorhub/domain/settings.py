"""Per-mentor schedule settings."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, List, Mapping, Optional, Tuple

from ..core import constants
from ..core.exceptions import ScheduleValidationException
from ..core.timezone_utils import is_valid_timezone
from ..utils.time_helpers import hhmm_to_minutes, is_valid_hhmm


@dataclass(frozen=True)
class ScheduleSettings:
    timezone: str = "UTC"
    default_session_duration_minutes: int = constants.DEFAULT_SESSION_DURATION
    buffer_minutes_between_sessions: int = constants.DEFAULT_BUFFER_TIME
    min_advance_booking_hours: int = constants.DEFAULT_MIN_ADVANCE_BOOKING_HOURS
    max_advance_booking_days: int = constants.DEFAULT_MAX_ADVANCE_BOOKING_DAYS
    default_start_time: str = constants.DEFAULT_START_TIME
    default_end_time: str = constants.DEFAULT_END_TIME
    is_active: bool = True
    allow_instant_booking: bool = True
    require_confirmation: bool = False
    # Extra durations a mentee may request besides the default one
    allowed_session_durations: Tuple[int, ...] = ()

    @property
    def needs_confirmation(self) -> bool:
        """Instant booking disabled always means manual confirmation."""
        return self.require_confirmation or not self.allow_instant_booking

    @property
    def permitted_durations(self) -> Tuple[int, ...]:
        return tuple(sorted({self.default_session_duration_minutes, *self.allowed_session_durations}))

    def validate(self) -> List[str]:
        errors: List[str] = []
        if not is_valid_timezone(self.timezone):
            errors.append(f"Unknown timezone: {self.timezone}")

        for label, value in [
            ("Session duration", self.default_session_duration_minutes),
            *[("Allowed session duration", d) for d in self.allowed_session_durations],
        ]:
            if not constants.MIN_SESSION_DURATION <= value <= constants.MAX_SESSION_DURATION:
                errors.append(
                    f"{label} must be between {constants.MIN_SESSION_DURATION} and "
                    f"{constants.MAX_SESSION_DURATION} minutes"
                )
        if not constants.MIN_BUFFER_TIME <= self.buffer_minutes_between_sessions <= constants.MAX_BUFFER_TIME:
            errors.append(
                f"Buffer time must be between {constants.MIN_BUFFER_TIME} and "
                f"{constants.MAX_BUFFER_TIME} minutes"
            )
        if not (
            constants.MIN_ADVANCE_BOOKING_HOURS
            <= self.min_advance_booking_hours
            <= constants.MAX_ADVANCE_BOOKING_HOURS
        ):
            errors.append(
                f"Minimum advance booking must be between {constants.MIN_ADVANCE_BOOKING_HOURS} "
                f"and {constants.MAX_ADVANCE_BOOKING_HOURS} hours"
            )
        if not (
            constants.MIN_ADVANCE_BOOKING_DAYS
            <= self.max_advance_booking_days
            <= constants.MAX_ADVANCE_BOOKING_DAYS
        ):
            errors.append(
                f"Maximum advance booking must be between {constants.MIN_ADVANCE_BOOKING_DAYS} "
                f"and {constants.MAX_ADVANCE_BOOKING_DAYS} days"
            )

        times_ok = True
        for label, value in (
            ("Default start time", self.default_start_time),
            ("Default end time", self.default_end_time),
        ):
            if not is_valid_hhmm(value, allow_end_of_day=label == "Default end time"):
                errors.append(f"{label} must be in HH:MM format")
                times_ok = False
        if times_ok and hhmm_to_minutes(self.default_end_time) <= hhmm_to_minutes(
            self.default_start_time
        ):
            errors.append("Default end time must be after default start time")
        return errors

    def raise_for_errors(self) -> None:
        errors = self.validate()
        if errors:
            raise ScheduleValidationException(errors, "Invalid schedule settings")

    def with_updates(self, updates: Mapping[str, Any]) -> "ScheduleSettings":
        """
        Apply a partial update; keys that are None or unknown are ignored.

        Raises:
            ScheduleValidationException: If the merged settings are invalid
        """
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in updates.items() if k in known and v is not None}
        if "allowed_session_durations" in changes:
            changes["allowed_session_durations"] = tuple(changes["allowed_session_durations"])
        updated = replace(self, **changes)
        updated.raise_for_errors()
        return updated


def default_settings(timezone: Optional[str] = None) -> ScheduleSettings:
    return ScheduleSettings(timezone=timezone or "UTC")
