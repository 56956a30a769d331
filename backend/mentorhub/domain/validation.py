"""
Time block validation.

Pure functions: nothing here raises for an invalid schedule. Every rule is
checked and every violation collected, so callers can display all errors
at once. Callers that must refuse a mutation turn a failed result into a
``ScheduleValidationException`` with ``raise_for_errors``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Iterable, Optional, Sequence

from ..core.constants import MINUTES_PER_DAY
from ..core.enums import BlockType, OverlapKind
from ..core.exceptions import ScheduleValidationException
from ..utils.time_helpers import minutes_to_hhmm
from .time_blocks import TimeBlock

_TYPE_DESCRIPTIONS = {
    BlockType.AVAILABLE: "available time",
    BlockType.BLOCKED: "blocked time",
    BlockType.BREAK: "break time",
    BlockType.BUFFER: "buffer time",
}


@dataclass(frozen=True)
class BlockOverlap:
    block: TimeBlock
    other: TimeBlock
    overlap_start: int
    overlap_end: int
    kind: OverlapKind


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[str, ...] = ()
    overlaps: tuple[BlockOverlap, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(self.errors + other.errors, self.overlaps + other.overlaps)

    def raise_for_errors(self, message: Optional[str] = None) -> None:
        if self.errors:
            raise ScheduleValidationException(list(self.errors), message)


def _has_positive_length(block: TimeBlock) -> bool:
    return block.start_minute < block.end_minute


def check_overlap(block: TimeBlock, other: TimeBlock) -> Optional[BlockOverlap]:
    """
    Describe how two blocks overlap, or return None when they do not.

    Overlap is half-open: blocks that merely touch (10:00 end, 10:00 start)
    do not overlap. Zero or negative length blocks never overlap anything.
    """
    if not (_has_positive_length(block) and _has_positive_length(other)):
        return None
    if not block.overlaps(other):
        return None

    if block.start_minute == other.start_minute and block.end_minute == other.end_minute:
        kind = OverlapKind.FULL
    elif block.start_minute <= other.start_minute and block.end_minute >= other.end_minute:
        kind = OverlapKind.CONTAINS
    elif other.start_minute <= block.start_minute and other.end_minute >= block.end_minute:
        kind = OverlapKind.CONTAINED
    else:
        kind = OverlapKind.PARTIAL

    return BlockOverlap(
        block=block,
        other=other,
        overlap_start=max(block.start_minute, other.start_minute),
        overlap_end=min(block.end_minute, other.end_minute),
        kind=kind,
    )


def describe_overlap(overlap: BlockOverlap) -> str:
    """Human-readable conflict message for one overlap."""
    block, other = overlap.block, overlap.other
    new_type = _TYPE_DESCRIPTIONS[block.type]
    existing_type = _TYPE_DESCRIPTIONS[other.type]

    if overlap.kind == OverlapKind.FULL:
        return f"This exact time slot ({block.label()}) is already set as {existing_type}"
    if overlap.kind == OverlapKind.CONTAINS:
        return (
            f"This {new_type} block ({block.label()}) completely overlaps with "
            f"existing {existing_type} ({other.label()})"
        )
    if overlap.kind == OverlapKind.CONTAINED:
        return (
            f"This {new_type} block ({block.label()}) is within an existing "
            f"{existing_type} block ({other.label()})"
        )
    return (
        f"This {new_type} block ({block.label()}) partially overlaps with {existing_type} "
        f"({other.label()}) from {minutes_to_hhmm(overlap.overlap_start)} "
        f"to {minutes_to_hhmm(overlap.overlap_end)}"
    )


def validate_time_block(
    candidate: TimeBlock,
    others: Iterable[TimeBlock],
    allowed_overlap_types: Collection[BlockType] = (),
) -> ValidationResult:
    """
    Validate one block against the other blocks of the same day.

    When editing, the caller excludes the block being edited from ``others``.

    Args:
        candidate: Block being added or edited
        others: Existing blocks on the same day
        allowed_overlap_types: Types allowed to coexist; an overlap is only
            permitted when both blocks have a type in this collection

    Returns:
        ValidationResult with every violation found
    """
    errors: list[str] = []
    overlaps: list[BlockOverlap] = []

    if candidate.start_minute < 0 or candidate.start_minute >= MINUTES_PER_DAY:
        errors.append(f"Start time ({candidate.start_time}) must be between 00:00 and 23:59")
    if candidate.end_minute <= 0 or candidate.end_minute > MINUTES_PER_DAY:
        errors.append(f"End time ({candidate.end_time}) must be between 00:01 and 24:00")
    if candidate.end_minute <= candidate.start_minute:
        errors.append(
            f"End time ({candidate.end_time}) must be after start time ({candidate.start_time})"
        )

    if candidate.type == BlockType.AVAILABLE and candidate.max_bookings is not None:
        max_bookings = candidate.max_bookings
        if isinstance(max_bookings, bool) or not isinstance(max_bookings, int) or max_bookings < 1:
            errors.append(
                f"Maximum concurrent bookings must be a positive whole number (got {max_bookings})"
            )

    for other in others:
        overlap = check_overlap(candidate, other)
        if overlap is None:
            continue
        if candidate.type in allowed_overlap_types and other.type in allowed_overlap_types:
            continue
        overlaps.append(overlap)
        errors.append(describe_overlap(overlap))

    return ValidationResult(tuple(errors), tuple(overlaps))


def validate_day_blocks(
    blocks: Sequence[TimeBlock],
    allowed_overlap_types: Collection[BlockType] = (),
) -> ValidationResult:
    """
    Validate a whole day's block list.

    Blocks are checked as if inserted one after another, so each conflicting
    pair is reported once, on the later block.
    """
    result = ValidationResult()
    for index, block in enumerate(blocks):
        result = result.merge(
            validate_time_block(block, blocks[:index], allowed_overlap_types)
        )
    return result
