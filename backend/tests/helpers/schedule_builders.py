"""Small builders shared by the availability tests."""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytz

from mentorhub.core.enums import BlockType
from mentorhub.domain.schedule import Schedule
from mentorhub.domain.settings import ScheduleSettings
from mentorhub.domain.time_blocks import TimeBlock
from mentorhub.domain.weekly_patterns import WeeklyPattern, WeeklyPatternStore

# Monday 2025-03-03 12:00 UTC
FIXED_NOW = datetime(2025, 3, 3, 12, 0, tzinfo=pytz.UTC)


def block(
    start: str,
    end: str,
    type: BlockType = BlockType.AVAILABLE,
    max_bookings: Optional[int] = None,
) -> TimeBlock:
    """Build a block from "HH:MM" strings."""
    return TimeBlock.from_hhmm(start, end, type, max_bookings)


def next_weekday(from_day: date, weekday: int) -> date:
    """Next date strictly after ``from_day`` whose ``weekday()`` is ``weekday``."""
    days_ahead = (weekday - from_day.weekday() - 1) % 7 + 1
    return from_day + timedelta(days=days_ahead)


def schedule_with(
    days: Iterable[int],
    blocks: Iterable[TimeBlock],
    mentor_id: str = "mentor-1",
    **settings_overrides,
) -> Schedule:
    """A schedule with the same blocks enabled on ``days`` (0 = Sunday)."""
    block_tuple = tuple(blocks)
    store = WeeklyPatternStore(WeeklyPattern(day, True, block_tuple) for day in days)
    return Schedule(mentor_id, ScheduleSettings(**settings_overrides), store)
