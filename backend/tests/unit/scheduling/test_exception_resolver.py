# backend/tests/unit/scheduling/test_exception_resolver.py
"""Unit tests for date exceptions and their resolution."""

from datetime import date, datetime, timedelta

import pytest
import pytz

from mentorhub.core.enums import BlockType, ExceptionOverlapPolicy, ExceptionPreset
from mentorhub.core.exceptions import ScheduleValidationException
from mentorhub.domain.date_exceptions import (
    ExceptionResolver,
    FullDayOverride,
    PartialDayOverride,
    preset_range,
)
from tests.helpers.schedule_builders import block

MAR_10 = date(2025, 3, 10)
MAR_12 = date(2025, 3, 12)


class TestCreate:
    def test_full_day_blocked_exception(self):
        resolver = ExceptionResolver()
        exc = resolver.create(MAR_10, MAR_12, reason="Trip")
        assert exc.is_full_day
        assert exc.type == BlockType.BLOCKED
        assert exc.effective_blocks() == []
        assert resolver.get(exc.id) is exc

    def test_single_day_range_is_allowed(self):
        exc = ExceptionResolver().create(MAR_10, MAR_10)
        assert exc.covers(MAR_10)
        assert not exc.covers(MAR_10 + timedelta(days=1))

    def test_end_before_start_rejected(self):
        with pytest.raises(ScheduleValidationException) as exc_info:
            ExceptionResolver().create(MAR_12, MAR_10)
        assert "must be on or after start date" in exc_info.value.errors[0]

    def test_partial_day_requires_blocks(self):
        with pytest.raises(ScheduleValidationException):
            ExceptionResolver().create(MAR_10, MAR_10, BlockType.AVAILABLE, is_full_day=False)

    def test_partial_day_blocks_are_validated(self):
        with pytest.raises(ScheduleValidationException) as exc_info:
            ExceptionResolver().create(
                MAR_10,
                MAR_10,
                BlockType.AVAILABLE,
                is_full_day=False,
                time_blocks=[block("10:00", "12:00"), block("11:00", "13:00")],
            )
        assert len(exc_info.value.errors) == 1

    def test_reason_too_long(self):
        with pytest.raises(ScheduleValidationException):
            ExceptionResolver().create(MAR_10, MAR_10, reason="x" * 256)

    def test_overlap_rejected_by_default(self):
        resolver = ExceptionResolver()
        first = resolver.create(MAR_10, MAR_12)
        with pytest.raises(ScheduleValidationException) as exc_info:
            resolver.create(MAR_12, MAR_12 + timedelta(days=2))
        assert exc_info.value.code == "EXCEPTION_OVERLAP"
        assert exc_info.value.details["conflicting_ids"] == [first.id]
        assert len(resolver.exceptions()) == 1

    def test_latest_wins_policy_accepts_overlap(self):
        resolver = ExceptionResolver(overlap_policy=ExceptionOverlapPolicy.LATEST_WINS)
        resolver.create(MAR_10, MAR_12)
        resolver.create(MAR_12, MAR_12)
        assert len(resolver.exceptions()) == 2


class TestResolve:
    def test_no_exception_for_date(self):
        assert ExceptionResolver().resolve(MAR_10) is None

    def test_most_recent_wins(self):
        resolver = ExceptionResolver(overlap_policy=ExceptionOverlapPolicy.LATEST_WINS)
        older = resolver.create(
            MAR_10, MAR_12, created_at=datetime(2025, 3, 1, 9, 0, tzinfo=pytz.UTC)
        )
        newer = resolver.create(
            MAR_10,
            MAR_10,
            BlockType.AVAILABLE,
            is_full_day=False,
            time_blocks=[block("14:00", "16:00")],
            created_at=datetime(2025, 3, 2, 9, 0, tzinfo=pytz.UTC),
        )
        assert resolver.resolve(MAR_10) is newer
        assert resolver.resolve(MAR_12) is older

    def test_insertion_order_breaks_created_at_ties(self):
        resolver = ExceptionResolver(overlap_policy=ExceptionOverlapPolicy.LATEST_WINS)
        stamp = datetime(2025, 3, 1, tzinfo=pytz.UTC)
        resolver.create(MAR_10, MAR_10, created_at=stamp)
        second = resolver.create(MAR_10, MAR_10, created_at=stamp)
        assert resolver.resolve(MAR_10) is second

    def test_in_range_is_inclusive_and_ordered(self):
        resolver = ExceptionResolver()
        late = resolver.create(date(2025, 4, 1), date(2025, 4, 2))
        early = resolver.create(MAR_10, MAR_12)
        assert resolver.in_range(MAR_12, date(2025, 4, 1)) == [early, late]
        assert resolver.in_range(date(2025, 3, 13), date(2025, 3, 31)) == []


class TestDelete:
    def test_delete_many_is_idempotent(self):
        resolver = ExceptionResolver()
        exc = resolver.create(MAR_10, MAR_10)
        assert resolver.delete_many([exc.id, "missing"]) == [exc.id]
        assert resolver.delete_many([exc.id]) == []
        assert resolver.exceptions() == []

    def test_delete_single(self):
        resolver = ExceptionResolver()
        exc = resolver.create(MAR_10, MAR_10)
        assert resolver.delete(exc.id) is True
        assert resolver.delete(exc.id) is False

    def test_copy_is_independent(self):
        resolver = ExceptionResolver()
        resolver.create(MAR_10, MAR_10)
        clone = resolver.copy()
        clone.create(MAR_12, MAR_12)
        assert len(resolver.exceptions()) == 1


class TestOverrides:
    def test_full_day_available_covers_whole_day(self):
        blocks = FullDayOverride(BlockType.AVAILABLE).effective_blocks()
        assert [(b.start_time, b.end_time) for b in blocks] == [("00:00", "24:00")]

    @pytest.mark.parametrize("type", [BlockType.BLOCKED, BlockType.BREAK, BlockType.BUFFER])
    def test_full_day_non_available_is_empty(self, type):
        assert FullDayOverride(type).effective_blocks() == []

    def test_partial_day_blocks_are_normalized(self):
        override = PartialDayOverride((block("11:00", "12:00"), block("10:00", "11:00")))
        assert [(b.start_time, b.end_time) for b in override.effective_blocks()] == [
            ("10:00", "12:00")
        ]


class TestPresets:
    @pytest.mark.parametrize(
        "preset,start,end,reason",
        [
            (ExceptionPreset.VACATION, date(2025, 3, 10), date(2025, 3, 16), "Vacation"),
            (ExceptionPreset.HOLIDAY, date(2025, 3, 17), date(2025, 3, 17), "Public Holiday"),
            (
                ExceptionPreset.CONFERENCE,
                date(2025, 3, 24),
                date(2025, 3, 26),
                "Conference Attendance",
            ),
        ],
    )
    def test_preset_ranges(self, preset, start, end, reason):
        assert preset_range(preset, date(2025, 3, 3)) == (start, end, reason)
