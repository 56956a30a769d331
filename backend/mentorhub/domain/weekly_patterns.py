"""
Recurring weekly availability.

One ``WeeklyPattern`` per day of week (0 = Sunday). Patterns are immutable;
``WeeklyPatternStore`` swaps whole patterns so a failed operation never
leaves a day half-edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.constants import DAYS_OF_WEEK, WEEKDAYS, WEEKEND_DAYS
from ..core.enums import BlockType, QuickSetupPreset
from ..core.exceptions import ScheduleValidationException
from .normalization import normalize_blocks
from .time_blocks import TimeBlock
from .validation import ValidationResult, validate_day_blocks, validate_time_block

logger = logging.getLogger(__name__)

DAY_RANGE = range(7)

STANDARD_DAY_BLOCKS: Tuple[TimeBlock, ...] = (
    TimeBlock(9 * 60, 12 * 60, BlockType.AVAILABLE, 1),
    TimeBlock(12 * 60, 13 * 60, BlockType.BREAK),
    TimeBlock(13 * 60, 17 * 60, BlockType.AVAILABLE, 1),
)

QUICK_SETUP_DAYS: Dict[QuickSetupPreset, Tuple[int, ...]] = {
    QuickSetupPreset.WEEKDAYS: WEEKDAYS,
    QuickSetupPreset.WEEKENDS: WEEKEND_DAYS,
    QuickSetupPreset.ALL: tuple(DAY_RANGE),
}


def _check_day(day_of_week: int) -> None:
    if day_of_week not in DAY_RANGE:
        raise ScheduleValidationException(
            [f"Day of week must be between 0 (Sunday) and 6 (Saturday), got {day_of_week}"]
        )


@dataclass(frozen=True)
class WeeklyPattern:
    day_of_week: int
    is_enabled: bool = False
    time_blocks: Tuple[TimeBlock, ...] = ()

    @property
    def day_name(self) -> str:
        return DAYS_OF_WEEK[self.day_of_week]

    @property
    def active_blocks(self) -> Tuple[TimeBlock, ...]:
        """Blocks contributing availability; a disabled day contributes none."""
        return self.time_blocks if self.is_enabled else ()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "isEnabled": self.is_enabled,
            "timeBlocks": [block.to_payload() for block in self.time_blocks],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WeeklyPattern":
        return cls(
            day_of_week=int(payload["dayOfWeek"]),
            is_enabled=bool(payload.get("isEnabled", False)),
            time_blocks=tuple(TimeBlock.from_payload(b) for b in payload.get("timeBlocks") or ()),
        )


@dataclass(frozen=True)
class AddBlockCommand:
    day_of_week: int
    block: TimeBlock


@dataclass(frozen=True)
class EditBlockCommand:
    day_of_week: int
    index: int
    block: TimeBlock


BlockCommand = Union[AddBlockCommand, EditBlockCommand]


@dataclass(frozen=True)
class WeeklyValidationResult:
    day_errors: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.day_errors

    @property
    def errors(self) -> List[str]:
        return [
            f"{DAYS_OF_WEEK[day]}: {message}"
            for day in sorted(self.day_errors)
            for message in self.day_errors[day]
        ]

    def raise_for_errors(self) -> None:
        if self.day_errors:
            raise ScheduleValidationException(
                self.errors,
                "Weekly schedule has invalid time blocks",
                details={
                    "days": {str(day): list(msgs) for day, msgs in self.day_errors.items()}
                },
            )


def validate_weekly_patterns(patterns: Iterable[WeeklyPattern]) -> WeeklyValidationResult:
    """
    Validate a full week.

    Every day's blocks are checked, enabled or not, since disabled days keep
    their blocks for re-enabling. Duplicate days are an error.
    """
    day_errors: Dict[int, Tuple[str, ...]] = {}
    seen: set[int] = set()
    for pattern in patterns:
        if pattern.day_of_week not in DAY_RANGE:
            day_errors[pattern.day_of_week] = (
                f"Day of week must be between 0 and 6, got {pattern.day_of_week}",
            )
            continue
        if pattern.day_of_week in seen:
            day_errors[pattern.day_of_week] = ("Duplicate entry for this day",)
            continue
        seen.add(pattern.day_of_week)
        result = validate_day_blocks(pattern.time_blocks)
        if not result.is_valid:
            day_errors[pattern.day_of_week] = result.errors
    return WeeklyValidationResult(day_errors)


def days_for_preset(preset: QuickSetupPreset) -> Tuple[int, ...]:
    return QUICK_SETUP_DAYS[QuickSetupPreset(preset)]


def build_default_patterns() -> Dict[int, WeeklyPattern]:
    """Mon-Fri with the standard day and a lunch break; weekends disabled."""
    return {
        day: WeeklyPattern(
            day_of_week=day,
            is_enabled=day in WEEKDAYS,
            time_blocks=STANDARD_DAY_BLOCKS if day in WEEKDAYS else (),
        )
        for day in DAY_RANGE
    }


class WeeklyPatternStore:
    """
    Per-day enable flag plus canonical block list for one mentor.

    Every mutation validates first and only then replaces the affected
    patterns, so a rejected call leaves the store untouched.
    """

    def __init__(self, patterns: Optional[Iterable[WeeklyPattern]] = None) -> None:
        self._patterns: Dict[int, WeeklyPattern] = {}
        for pattern in patterns or ():
            _check_day(pattern.day_of_week)
            self._patterns[pattern.day_of_week] = pattern

    def get_pattern(self, day_of_week: int) -> WeeklyPattern:
        _check_day(day_of_week)
        return self._patterns.get(day_of_week, WeeklyPattern(day_of_week))

    def patterns(self) -> List[WeeklyPattern]:
        """All seven days, Sunday first, defaults filled in."""
        return [self.get_pattern(day) for day in DAY_RANGE]

    def stored_patterns(self) -> List[WeeklyPattern]:
        return [self._patterns[day] for day in sorted(self._patterns)]

    def set_enabled(self, day_of_week: int, enabled: bool) -> WeeklyPattern:
        pattern = replace(self.get_pattern(day_of_week), is_enabled=enabled)
        self._patterns[day_of_week] = pattern
        return pattern

    def upsert_block(self, command: BlockCommand) -> WeeklyPattern:
        """
        Add a block, or replace the block at ``command.index`` when editing.

        The candidate is validated against the day's other blocks (the block
        being edited is excluded) and the day is re-normalized.

        Raises:
            ScheduleValidationException: With every violation found
        """
        pattern = self.get_pattern(command.day_of_week)
        blocks = list(pattern.time_blocks)

        if isinstance(command, EditBlockCommand):
            if not 0 <= command.index < len(blocks):
                raise ScheduleValidationException(
                    [f"No time block at position {command.index} on {pattern.day_name}"],
                    code="BLOCK_NOT_FOUND",
                )
            others = blocks[: command.index] + blocks[command.index + 1 :]
        else:
            others = blocks

        result: ValidationResult = validate_time_block(command.block, others)
        result.raise_for_errors()

        updated = replace(
            pattern, time_blocks=tuple(normalize_blocks(others + [command.block]))
        )
        self._patterns[command.day_of_week] = updated
        return updated

    def remove_block(self, day_of_week: int, index: int) -> bool:
        """Remove the block at ``index``; an index past the end is a no-op."""
        pattern = self.get_pattern(day_of_week)
        if not 0 <= index < len(pattern.time_blocks):
            return False
        blocks = pattern.time_blocks[:index] + pattern.time_blocks[index + 1 :]
        self._patterns[day_of_week] = replace(pattern, time_blocks=blocks)
        return True

    def apply_bulk_pattern(
        self, days_of_week: Iterable[int], blocks: Sequence[TimeBlock]
    ) -> List[WeeklyPattern]:
        """
        Write the same canonical block list to every targeted day, enabled.

        All or nothing: the blocks are validated once before any day changes.
        """
        targets = sorted(set(days_of_week))
        for day in targets:
            _check_day(day)
        validate_day_blocks(blocks).raise_for_errors()

        canonical = tuple(normalize_blocks(blocks))
        updated = [WeeklyPattern(day, True, canonical) for day in targets]
        for pattern in updated:
            self._patterns[pattern.day_of_week] = pattern
        logger.debug(f"Bulk pattern applied to days {targets}")
        return updated

    def copy_day(self, source_day: int, target_days: Iterable[int]) -> List[WeeklyPattern]:
        """Clone the source's enable flag and blocks onto each target day."""
        source = self.get_pattern(source_day)
        targets = sorted({day for day in target_days if day != source_day})
        for day in targets:
            _check_day(day)
        copied = [
            WeeklyPattern(day, source.is_enabled, tuple(source.time_blocks)) for day in targets
        ]
        for pattern in copied:
            self._patterns[pattern.day_of_week] = pattern
        return copied

    def replace_all(self, patterns: Iterable[WeeklyPattern]) -> None:
        """Validate a full week and swap it in, normalizing each day."""
        incoming = list(patterns)
        validate_weekly_patterns(incoming).raise_for_errors()
        self._patterns = {
            p.day_of_week: replace(p, time_blocks=tuple(normalize_blocks(p.time_blocks)))
            for p in incoming
        }

    def copy(self) -> "WeeklyPatternStore":
        return WeeklyPatternStore(self._patterns.values())
