"""
Date-range overrides of the weekly pattern.

An exception either replaces whole days (``FullDayOverride``) or supplies
its own block list for every covered date (``PartialDayOverride``). For a
covered date the weekly pattern is not consulted at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import BlockType, ExceptionOverlapPolicy, ExceptionPreset
from ..core.exceptions import ScheduleValidationException
from ..core.timezone_utils import ensure_aware, now_utc
from ..core.ulid_helper import generate_ulid
from .normalization import normalize_blocks
from .time_blocks import TimeBlock
from .validation import validate_day_blocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FullDayOverride:
    type: BlockType = BlockType.BLOCKED

    @property
    def is_full_day(self) -> bool:
        return True

    def effective_blocks(self) -> List[TimeBlock]:
        # A whole day of BLOCKED/BREAK/BUFFER time leaves nothing to show
        if self.type != BlockType.AVAILABLE:
            return []
        return [TimeBlock.full_day(BlockType.AVAILABLE)]


@dataclass(frozen=True)
class PartialDayOverride:
    time_blocks: Tuple[TimeBlock, ...]
    type: BlockType = BlockType.AVAILABLE

    @property
    def is_full_day(self) -> bool:
        return False

    def effective_blocks(self) -> List[TimeBlock]:
        return normalize_blocks(self.time_blocks)


DayOverride = Union[FullDayOverride, PartialDayOverride]


@dataclass(frozen=True)
class AvailabilityException:
    id: str
    start_date: date
    end_date: date
    override: DayOverride
    reason: Optional[str] = None
    created_at: datetime = field(default_factory=now_utc)

    @property
    def type(self) -> BlockType:
        return self.override.type

    @property
    def is_full_day(self) -> bool:
        return self.override.is_full_day

    @property
    def time_blocks(self) -> Tuple[TimeBlock, ...]:
        if isinstance(self.override, PartialDayOverride):
            return self.override.time_blocks
        return ()

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def intersects(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date

    def effective_blocks(self) -> List[TimeBlock]:
        return self.override.effective_blocks()


def build_override(
    type: BlockType,
    is_full_day: bool,
    time_blocks: Optional[Sequence[TimeBlock]] = None,
) -> DayOverride:
    if is_full_day:
        return FullDayOverride(BlockType(type))
    return PartialDayOverride(tuple(time_blocks or ()), BlockType(type))


def validate_exception(
    start_date: date,
    end_date: date,
    override: DayOverride,
    reason: Optional[str] = None,
) -> List[str]:
    """Collect every problem with a candidate exception; empty means valid."""
    errors: List[str] = []
    if start_date > end_date:
        errors.append(
            f"End date ({end_date.isoformat()}) must be on or after start date "
            f"({start_date.isoformat()})"
        )
    if reason is not None and len(reason) > MAX_REASON_LENGTH:
        errors.append(f"Reason must be at most {MAX_REASON_LENGTH} characters")
    if isinstance(override, PartialDayOverride):
        if not override.time_blocks:
            errors.append("Partial-day exceptions need at least one time block")
        else:
            errors.extend(validate_day_blocks(override.time_blocks).errors)
    return errors


def _recency_key(item: Tuple[int, AvailabilityException]) -> Tuple[datetime, int]:
    index, exception = item
    return ensure_aware(exception.created_at), index


class ExceptionResolver:
    """
    Holds a mentor's exceptions and answers "which one applies to this date".

    Creation and deletion are pure data operations. Business rules that
    depend on the clock (no exceptions in the past) belong to callers.
    """

    def __init__(
        self,
        exceptions: Iterable[AvailabilityException] = (),
        overlap_policy: ExceptionOverlapPolicy = ExceptionOverlapPolicy.REJECT,
    ) -> None:
        self._exceptions: List[AvailabilityException] = list(exceptions)
        self.overlap_policy = ExceptionOverlapPolicy(overlap_policy)

    def exceptions(self) -> List[AvailabilityException]:
        return sorted(self._exceptions, key=lambda e: (e.start_date, e.end_date, e.id))

    def get(self, exception_id: str) -> Optional[AvailabilityException]:
        return next((e for e in self._exceptions if e.id == exception_id), None)

    def create(
        self,
        start_date: date,
        end_date: date,
        type: BlockType = BlockType.BLOCKED,
        is_full_day: bool = True,
        reason: Optional[str] = None,
        time_blocks: Optional[Sequence[TimeBlock]] = None,
        *,
        exception_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> AvailabilityException:
        """
        Create an exception covering ``[start_date, end_date]`` inclusive.

        Raises:
            ScheduleValidationException: If the range or blocks are invalid, or
                the range intersects an existing exception under the reject
                policy
        """
        override = build_override(type, is_full_day, time_blocks)
        errors = validate_exception(start_date, end_date, override, reason)
        if errors:
            raise ScheduleValidationException(errors, "Invalid availability exception")

        if self.overlap_policy == ExceptionOverlapPolicy.REJECT:
            clashes = self.in_range(start_date, end_date)
            if clashes:
                raise ScheduleValidationException(
                    [
                        f"Dates overlap an existing exception "
                        f"({c.start_date.isoformat()} to {c.end_date.isoformat()})"
                        for c in clashes
                    ],
                    "Exception dates overlap an existing exception",
                    code="EXCEPTION_OVERLAP",
                    details={"conflicting_ids": [c.id for c in clashes]},
                )

        exception = AvailabilityException(
            id=exception_id or generate_ulid(),
            start_date=start_date,
            end_date=end_date,
            override=override,
            reason=reason,
            created_at=created_at or now_utc(),
        )
        self._exceptions.append(exception)
        return exception

    def delete(self, exception_id: str) -> bool:
        """Remove by id; unknown ids are ignored."""
        before = len(self._exceptions)
        self._exceptions = [e for e in self._exceptions if e.id != exception_id]
        return len(self._exceptions) != before

    def delete_many(self, exception_ids: Iterable[str]) -> List[str]:
        """Bulk idempotent delete. Returns the ids that were actually removed."""
        wanted = set(exception_ids)
        removed = [e.id for e in self._exceptions if e.id in wanted]
        self._exceptions = [e for e in self._exceptions if e.id not in wanted]
        return removed

    def resolve(self, day: date) -> Optional[AvailabilityException]:
        """
        The exception governing ``day``, or None.

        If several exceptions cover the date the most recently created wins.
        """
        matches = [(i, e) for i, e in enumerate(self._exceptions) if e.covers(day)]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} exceptions cover {day.isoformat()}, using the most recent"
            )
        return max(matches, key=_recency_key)[1]

    def in_range(self, start_date: date, end_date: date) -> List[AvailabilityException]:
        """Exceptions intersecting the inclusive range, ordered by start date."""
        return [e for e in self.exceptions() if e.intersects(start_date, end_date)]

    def copy(self) -> "ExceptionResolver":
        return ExceptionResolver(self._exceptions, self.overlap_policy)


# (offset from today in days, length in days, reason)
EXCEPTION_PRESETS: Dict[ExceptionPreset, Tuple[int, int, str]] = {
    ExceptionPreset.VACATION: (7, 7, "Vacation"),
    ExceptionPreset.HOLIDAY: (14, 1, "Public Holiday"),
    ExceptionPreset.CONFERENCE: (21, 3, "Conference Attendance"),
}


def preset_range(preset: ExceptionPreset, today: date) -> Tuple[date, date, str]:
    """Dates and reason for a quick-add preset, relative to the mentor's today."""
    offset, length, reason = EXCEPTION_PRESETS[ExceptionPreset(preset)]
    start = today + timedelta(days=offset)
    return start, start + timedelta(days=length - 1), reason
