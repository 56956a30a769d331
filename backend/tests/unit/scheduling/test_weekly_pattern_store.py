# backend/tests/unit/scheduling/test_weekly_pattern_store.py
"""
Unit tests for the weekly pattern store.

Every mutation is all-or-nothing: a rejected call must leave the store
exactly as it was.
"""

import pytest

from mentorhub.core.enums import BlockType, QuickSetupPreset
from mentorhub.core.exceptions import ScheduleValidationException
from mentorhub.domain.weekly_patterns import (
    STANDARD_DAY_BLOCKS,
    AddBlockCommand,
    EditBlockCommand,
    WeeklyPattern,
    WeeklyPatternStore,
    build_default_patterns,
    days_for_preset,
    validate_weekly_patterns,
)
from tests.helpers.schedule_builders import block

MONDAY = 1


@pytest.fixture
def store() -> WeeklyPatternStore:
    return WeeklyPatternStore(build_default_patterns().values())


class TestDefaults:
    def test_default_week_is_weekdays_with_lunch(self):
        patterns = build_default_patterns()
        assert [d for d, p in patterns.items() if p.is_enabled] == [1, 2, 3, 4, 5]
        assert patterns[MONDAY].time_blocks == STANDARD_DAY_BLOCKS
        assert patterns[0].time_blocks == ()

    def test_unknown_day_reads_as_disabled_and_empty(self):
        pattern = WeeklyPatternStore().get_pattern(3)
        assert pattern == WeeklyPattern(3, False, ())

    def test_patterns_returns_all_seven_days(self):
        assert [p.day_of_week for p in WeeklyPatternStore().patterns()] == list(range(7))

    @pytest.mark.parametrize("day", [-1, 7])
    def test_day_out_of_range(self, day):
        with pytest.raises(ScheduleValidationException):
            WeeklyPatternStore().get_pattern(day)


class TestSetEnabled:
    def test_disabling_keeps_blocks(self, store):
        store.set_enabled(MONDAY, False)
        pattern = store.get_pattern(MONDAY)
        assert not pattern.is_enabled
        assert pattern.time_blocks == STANDARD_DAY_BLOCKS
        assert pattern.active_blocks == ()

    def test_enabling_an_empty_day(self, store):
        store.set_enabled(0, True)
        assert store.get_pattern(0).is_enabled


class TestUpsertBlock:
    def test_add_block_normalizes_day(self, store):
        store.upsert_block(AddBlockCommand(0, block("10:00", "11:00")))
        store.upsert_block(AddBlockCommand(0, block("11:00", "12:00")))
        assert [(b.start_time, b.end_time) for b in store.get_pattern(0).time_blocks] == [
            ("10:00", "12:00")
        ]

    def test_rejected_add_leaves_day_untouched(self, store):
        before = store.get_pattern(MONDAY)
        with pytest.raises(ScheduleValidationException) as exc_info:
            store.upsert_block(AddBlockCommand(MONDAY, block("11:00", "12:30")))
        assert store.get_pattern(MONDAY) == before
        assert len(exc_info.value.errors) == 2

    def test_edit_replaces_block_without_self_conflict(self, store):
        store.upsert_block(EditBlockCommand(MONDAY, 0, block("08:00", "12:00")))
        blocks = store.get_pattern(MONDAY).time_blocks
        assert blocks[0].start_time == "08:00"
        assert len(blocks) == 3

    def test_edit_with_bad_index(self, store):
        with pytest.raises(ScheduleValidationException) as exc_info:
            store.upsert_block(EditBlockCommand(MONDAY, 9, block("08:00", "09:00")))
        assert exc_info.value.code == "BLOCK_NOT_FOUND"

    def test_edit_that_conflicts_with_other_block(self, store):
        with pytest.raises(ScheduleValidationException):
            store.upsert_block(EditBlockCommand(MONDAY, 0, block("09:00", "12:30")))


class TestRemoveBlock:
    def test_remove_existing(self, store):
        assert store.remove_block(MONDAY, 1) is True
        types = [b.type for b in store.get_pattern(MONDAY).time_blocks]
        assert BlockType.BREAK not in types

    def test_remove_out_of_range_is_noop(self, store):
        before = store.get_pattern(MONDAY)
        assert store.remove_block(MONDAY, 3) is False
        assert store.get_pattern(MONDAY) == before


class TestBulkOperations:
    def test_preset_days(self):
        assert days_for_preset(QuickSetupPreset.WEEKDAYS) == (1, 2, 3, 4, 5)
        assert days_for_preset(QuickSetupPreset.WEEKENDS) == (0, 6)
        assert days_for_preset("all") == tuple(range(7))

    def test_apply_bulk_pattern_enables_and_normalizes(self, store):
        updated = store.apply_bulk_pattern(
            [0, 6], [block("12:00", "14:00"), block("10:00", "12:00")]
        )
        assert [p.day_of_week for p in updated] == [0, 6]
        for day in (0, 6):
            pattern = store.get_pattern(day)
            assert pattern.is_enabled
            assert [(b.start_time, b.end_time) for b in pattern.time_blocks] == [("10:00", "14:00")]

    def test_apply_bulk_pattern_is_all_or_nothing(self, store):
        before = store.patterns()
        with pytest.raises(ScheduleValidationException):
            store.apply_bulk_pattern([0, 6], [block("10:00", "12:00"), block("11:00", "13:00")])
        assert store.patterns() == before

    def test_copy_day_skips_source_and_copies_flag(self, store):
        store.set_enabled(MONDAY, False)
        copied = store.copy_day(MONDAY, [MONDAY, 0, 6])
        assert [p.day_of_week for p in copied] == [0, 6]
        assert store.get_pattern(0).time_blocks == STANDARD_DAY_BLOCKS
        assert not store.get_pattern(0).is_enabled

    def test_copy_day_bad_target_changes_nothing(self, store):
        before = store.patterns()
        with pytest.raises(ScheduleValidationException):
            store.copy_day(MONDAY, [0, 9])
        assert store.patterns() == before

    def test_copy_is_independent(self, store):
        clone = store.copy()
        clone.set_enabled(MONDAY, False)
        assert store.get_pattern(MONDAY).is_enabled


class TestWeeklyValidation:
    def test_errors_are_prefixed_with_day_name(self):
        result = validate_weekly_patterns(
            [WeeklyPattern(2, True, (block("09:00", "11:00"), block("10:00", "12:00")))]
        )
        assert not result.is_valid
        assert result.errors[0].startswith("Tuesday: ")

    def test_duplicate_days_rejected(self):
        result = validate_weekly_patterns([WeeklyPattern(1), WeeklyPattern(1)])
        assert result.day_errors[1] == ("Duplicate entry for this day",)

    def test_disabled_days_are_still_validated(self):
        result = validate_weekly_patterns(
            [WeeklyPattern(4, False, (block("12:00", "11:00"),))]
        )
        assert 4 in result.day_errors

    def test_replace_all_rejects_invalid_week(self, store):
        before = store.patterns()
        with pytest.raises(ScheduleValidationException) as exc_info:
            store.replace_all([WeeklyPattern(3, True, (block("12:00", "11:00"),))])
        assert "3" in exc_info.value.details["days"]
        assert store.patterns() == before
