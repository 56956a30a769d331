# backend/mentorhub/services/availability_service.py
"""
Availability Service for the MentorHub platform

This service handles all mentor-side availability business logic: the
schedule aggregate (settings + weekly patterns), block edits, quick setup,
day copies and date exceptions.

Every mutation loads the aggregate, applies the domain operation to a
working copy, writes the affected rows and bumps the schedule version in a
single transaction. A schedule that does not exist yet is created from the
default template on the first write.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
import logging
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    ERROR_SCHEDULE_EXISTS,
    ERROR_SCHEDULE_NOT_FOUND,
    ERROR_SCHEDULE_VERSION_CONFLICT,
)
from ..core.enums import AvailabilitySource, BlockType, ExceptionPreset, QuickSetupPreset
from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    ScheduleValidationException,
)
from ..core.timezone_utils import now_utc, to_timezone, today_in_timezone
from ..domain.date_exceptions import AvailabilityException, preset_range
from ..domain.schedule import DayAvailability, Schedule
from ..domain.settings import ScheduleSettings
from ..domain.templates import Template, apply_template
from ..domain.time_blocks import TimeBlock
from ..domain.weekly_patterns import (
    STANDARD_DAY_BLOCKS,
    AddBlockCommand,
    EditBlockCommand,
    WeeklyPattern,
    days_for_preset,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.availability_repository import AvailabilityRepository
from .base import BaseService

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class AvailabilityService(BaseService):
    """
    Service layer for a mentor's availability schedule.

    Reads never write: a mentor without a schedule sees the default one
    until their first change persists it.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        """Initialize availability service with an optional repository and clock."""
        super().__init__(db)
        self.repository = repository or AvailabilityRepository(db)
        self.clock = clock

    # ----- loading helpers -----

    def _load(self, mentor_id: str) -> Optional[Schedule]:
        return self.repository.load_schedule(mentor_id, settings.exception_overlap_policy)

    def _default(self, mentor_id: str) -> Schedule:
        return Schedule.default(
            mentor_id, settings.default_timezone, settings.exception_overlap_policy
        )

    def _load_for_write(self, mentor_id: str) -> Schedule:
        """Existing schedule, or a freshly inserted default one."""
        schedule = self._load(mentor_id)
        if schedule is not None:
            return schedule
        schedule = self._default(mentor_id)
        row = self.repository.create_schedule(schedule)
        schedule.id = row.id
        schedule.version = row.version
        self.logger.info(f"Created default availability schedule for mentor {mentor_id}")
        return schedule

    def _require(self, mentor_id: str) -> Schedule:
        schedule = self._load(mentor_id)
        if schedule is None:
            raise NotFoundException(ERROR_SCHEDULE_NOT_FOUND, code="SCHEDULE_NOT_FOUND")
        return schedule

    def _bump_version(self, schedule: Schedule) -> None:
        if not self.repository.bump_version(schedule.id, schedule.version):
            prometheus_metrics.inc_version_conflict()
            raise ConflictException(
                ERROR_SCHEDULE_VERSION_CONFLICT,
                code="SCHEDULE_VERSION_CONFLICT",
                details={"expected_version": schedule.version},
            )
        schedule.version += 1

    def _check_expected_version(self, schedule: Schedule, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != schedule.version:
            prometheus_metrics.inc_version_conflict()
            raise ConflictException(
                ERROR_SCHEDULE_VERSION_CONFLICT,
                code="SCHEDULE_VERSION_CONFLICT",
                details={"expected_version": expected_version, "current_version": schedule.version},
            )

    @contextmanager
    def _counting_rejections(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ScheduleValidationException:
            prometheus_metrics.inc_validation_failure(operation)
            raise

    def _today(self, schedule: Schedule) -> date:
        return today_in_timezone(schedule.timezone, self.clock())

    @staticmethod
    def _as_local_date(value: DateLike, tz_name: str) -> date:
        if isinstance(value, datetime):
            return to_timezone(value, tz_name).date()
        return value

    # ----- schedule -----

    @BaseService.measure_operation("get_schedule")
    def get_schedule(self, mentor_id: str) -> Optional[Schedule]:
        """
        Get a mentor's persisted schedule.

        Returns:
            The schedule, or None if the mentor never saved one
        """
        return self._load(mentor_id)

    @BaseService.measure_operation("get_schedule_or_default")
    def get_schedule_or_default(self, mentor_id: str) -> Schedule:
        """Persisted schedule, or the unsaved default."""
        return self._load(mentor_id) or self._default(mentor_id)

    @BaseService.measure_operation("create_schedule")
    def create_schedule(
        self,
        mentor_id: str,
        schedule_settings: ScheduleSettings,
        weekly_patterns: Sequence[WeeklyPattern],
    ) -> Schedule:
        """
        Create a mentor's schedule from a full payload.

        Raises:
            ConflictException: If the mentor already has a schedule
            ScheduleValidationException: If settings or patterns are invalid
        """
        self.log_operation("create_schedule", mentor_id=mentor_id)
        with self._counting_rejections("create_schedule"), self.transaction():
            if self.repository.get_by_mentor(mentor_id) is not None:
                raise ConflictException(ERROR_SCHEDULE_EXISTS, code="SCHEDULE_EXISTS")

            schedule_settings.raise_for_errors()
            schedule = Schedule(mentor_id, schedule_settings)
            schedule.replace_weekly_patterns(weekly_patterns)
            row = self.repository.create_schedule(schedule)
            schedule.id = row.id
            schedule.version = row.version
            return schedule

    @BaseService.measure_operation("replace_schedule")
    def replace_schedule(
        self,
        mentor_id: str,
        schedule_settings: ScheduleSettings,
        weekly_patterns: Sequence[WeeklyPattern],
        expected_version: Optional[int] = None,
    ) -> Schedule:
        """
        Replace settings and the whole week in one write.

        Days missing from ``weekly_patterns`` are dropped (they read back as
        disabled). Exceptions are kept.

        Raises:
            NotFoundException: If the mentor has no schedule
            ConflictException: If ``expected_version`` is stale
            ScheduleValidationException: If settings or patterns are invalid
        """
        self.log_operation("replace_schedule", mentor_id=mentor_id)
        with self._counting_rejections("replace_schedule"), self.transaction():
            current = self._require(mentor_id)
            self._check_expected_version(current, expected_version)

            schedule_settings.raise_for_errors()
            working = current.copy()
            working.settings = schedule_settings
            working.replace_weekly_patterns(weekly_patterns)

            self.repository.save_settings(working.id, working.settings)
            stored = working.weekly.stored_patterns()
            self.repository.save_weekly_patterns(working.id, stored)
            self.repository.delete_weekly_patterns_except(
                working.id, [p.day_of_week for p in stored]
            )
            self._bump_version(working)
            return working

    @BaseService.measure_operation("update_settings")
    def update_settings(self, mentor_id: str, updates: Mapping[str, Any]) -> Schedule:
        """
        Partially update settings; creates the default schedule if needed.

        Raises:
            ScheduleValidationException: If the merged settings are invalid
        """
        self.log_operation("update_settings", mentor_id=mentor_id, fields=sorted(updates))
        with self._counting_rejections("update_settings"), self.transaction():
            schedule = self._load_for_write(mentor_id)
            working = schedule.copy()
            working.update_settings(updates)
            self.repository.save_settings(working.id, working.settings)
            self._bump_version(working)
            return working

    def write_template(self, mentor_id: str, template: Template) -> Schedule:
        """
        Stage a template's settings subset and week without committing.

        Runs inside the caller's ``transaction()``, together with any other
        writes that must commit with it.
        """
        self.log_operation("apply_template", mentor_id=mentor_id, template=template.name)
        with self._counting_rejections("apply_template"):
            schedule = self._load_for_write(mentor_id)
            working = apply_template(schedule, template)
            self.repository.save_settings(working.id, working.settings)
            stored = working.weekly.stored_patterns()
            self.repository.save_weekly_patterns(working.id, stored)
            self.repository.delete_weekly_patterns_except(
                working.id, [p.day_of_week for p in stored]
            )
            self._bump_version(working)
            return working

    # ----- weekly patterns -----

    def _write_days(
        self, mentor_id: str, operation: str, mutate: Callable[[Schedule], Iterable[int]]
    ) -> Schedule:
        """Run ``mutate`` on a working copy and persist the days it reports."""
        with self._counting_rejections(operation), self.transaction():
            schedule = self._load_for_write(mentor_id)
            working = schedule.copy()
            days = sorted(set(mutate(working)))
            if days:
                self.repository.save_weekly_patterns(
                    working.id, [working.weekly.get_pattern(day) for day in days]
                )
                self._bump_version(working)
            return working

    @BaseService.measure_operation("set_day_enabled")
    def set_day_enabled(self, mentor_id: str, day_of_week: int, enabled: bool) -> Schedule:
        """Toggle a day; blocks are kept when disabling."""
        self.log_operation("set_day_enabled", mentor_id=mentor_id, day=day_of_week, enabled=enabled)

        def mutate(working: Schedule) -> List[int]:
            working.weekly.set_enabled(day_of_week, enabled)
            return [day_of_week]

        return self._write_days(mentor_id, "set_day_enabled", mutate)

    @BaseService.measure_operation("add_block")
    def add_block(self, mentor_id: str, day_of_week: int, block: TimeBlock) -> Schedule:
        """
        Add a time block to a day.

        Raises:
            ScheduleValidationException: With every violation; nothing is written
        """
        self.log_operation("add_block", mentor_id=mentor_id, day=day_of_week)

        def mutate(working: Schedule) -> List[int]:
            working.weekly.upsert_block(AddBlockCommand(day_of_week, block))
            return [day_of_week]

        return self._write_days(mentor_id, "add_block", mutate)

    @BaseService.measure_operation("edit_block")
    def edit_block(
        self, mentor_id: str, day_of_week: int, index: int, block: TimeBlock
    ) -> Schedule:
        """Replace the block at ``index``; it is not checked against its old self."""
        self.log_operation("edit_block", mentor_id=mentor_id, day=day_of_week, index=index)

        def mutate(working: Schedule) -> List[int]:
            working.weekly.upsert_block(EditBlockCommand(day_of_week, index, block))
            return [day_of_week]

        return self._write_days(mentor_id, "edit_block", mutate)

    @BaseService.measure_operation("remove_block")
    def remove_block(self, mentor_id: str, day_of_week: int, index: int) -> Tuple[Schedule, bool]:
        """
        Remove the block at ``index``.

        Returns:
            Tuple of (schedule, whether a block was removed)
        """
        self.log_operation("remove_block", mentor_id=mentor_id, day=day_of_week, index=index)
        removed: List[bool] = []

        def mutate(working: Schedule) -> List[int]:
            removed.append(working.weekly.remove_block(day_of_week, index))
            return [day_of_week] if removed[0] else []

        schedule = self._write_days(mentor_id, "remove_block", mutate)
        return schedule, removed[0]

    @BaseService.measure_operation("quick_setup")
    def quick_setup(
        self,
        mentor_id: str,
        preset: Optional[QuickSetupPreset] = None,
        days_of_week: Optional[Iterable[int]] = None,
        blocks: Optional[Sequence[TimeBlock]] = None,
    ) -> Schedule:
        """
        Write one block list to a group of days, all or nothing.

        Args:
            mentor_id: The mentor ID
            preset: Day group (weekdays, weekends, all); ignored if days are given
            days_of_week: Explicit target days
            blocks: Block list; defaults to 09:00-17:00 with a lunch break
        """
        if days_of_week is not None:
            targets = list(days_of_week)
        elif preset is not None:
            targets = list(days_for_preset(preset))
        else:
            raise ScheduleValidationException(["Choose a preset or a list of days"])
        day_blocks = list(blocks) if blocks is not None else list(STANDARD_DAY_BLOCKS)
        self.log_operation("quick_setup", mentor_id=mentor_id, days=targets)

        def mutate(working: Schedule) -> List[int]:
            return [p.day_of_week for p in working.weekly.apply_bulk_pattern(targets, day_blocks)]

        return self._write_days(mentor_id, "quick_setup", mutate)

    @BaseService.measure_operation("copy_day")
    def copy_day(self, mentor_id: str, source_day: int, target_days: Iterable[int]) -> Schedule:
        """Copy one day's flag and blocks onto other days, all or nothing."""
        targets = list(target_days)
        self.log_operation("copy_day", mentor_id=mentor_id, source=source_day, targets=targets)

        def mutate(working: Schedule) -> List[int]:
            return [p.day_of_week for p in working.weekly.copy_day(source_day, targets)]

        return self._write_days(mentor_id, "copy_day", mutate)

    # ----- effective availability -----

    @BaseService.measure_operation("get_effective_availability")
    def get_effective_availability(self, mentor_id: str, day: date) -> DayAvailability:
        """
        Exception-resolved blocks for one date, with where they came from.

        A mentor who never saved a schedule is not bookable, so the day is
        empty with source ``unset``, matching slot listing and booking.
        """
        schedule = self._load(mentor_id)
        if schedule is None:
            return DayAvailability(day, AvailabilitySource.UNSET, ())
        return schedule.describe_day(day)

    # ----- exceptions -----

    @BaseService.measure_operation("list_exceptions")
    def list_exceptions(
        self,
        mentor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AvailabilityException]:
        """All exceptions, or those intersecting ``[start_date, end_date]`` when both are given."""
        schedule = self._load(mentor_id)
        if schedule is None:
            return []
        if start_date is not None and end_date is not None:
            return schedule.exceptions.in_range(start_date, end_date)
        return schedule.exceptions.exceptions()

    @BaseService.measure_operation("create_exception")
    def create_exception(
        self,
        mentor_id: str,
        start_date: DateLike,
        end_date: DateLike,
        type: BlockType = BlockType.BLOCKED,
        is_full_day: bool = True,
        reason: Optional[str] = None,
        time_blocks: Optional[Sequence[TimeBlock]] = None,
    ) -> AvailabilityException:
        """
        Create a date exception.

        Instants are converted to dates in the mentor's timezone. Exceptions
        starting before the mentor's today are refused unless configured
        otherwise.

        Raises:
            ScheduleValidationException: If invalid, in the past, or overlapping
        """
        self.log_operation("create_exception", mentor_id=mentor_id)
        with self._counting_rejections("create_exception"), self.transaction():
            schedule = self._load_for_write(mentor_id)
            start = self._as_local_date(start_date, schedule.timezone)
            end = self._as_local_date(end_date, schedule.timezone)

            if not settings.allow_past_exceptions and start < self._today(schedule):
                raise ScheduleValidationException(
                    ["Exceptions cannot start in the past"], code="EXCEPTION_IN_PAST"
                )

            working = schedule.copy()
            exception = working.exceptions.create(
                start, end, type, is_full_day, reason, time_blocks, created_at=self.clock()
            )
            self.repository.add_exception(working.id, exception)
            self._bump_version(working)
            return exception

    @BaseService.measure_operation("quick_add_exception")
    def quick_add_exception(
        self, mentor_id: str, preset: ExceptionPreset
    ) -> AvailabilityException:
        """Full-day BLOCKED exception for a vacation, holiday or conference preset."""
        schedule = self.get_schedule_or_default(mentor_id)
        start, end, reason = preset_range(preset, self._today(schedule))
        return self.create_exception(
            mentor_id, start, end, BlockType.BLOCKED, is_full_day=True, reason=reason
        )

    @BaseService.measure_operation("delete_exceptions")
    def delete_exceptions(self, mentor_id: str, exception_ids: Iterable[str]) -> List[str]:
        """
        Delete exceptions by id. Idempotent: unknown ids are ignored.

        Returns:
            Ids that existed and were removed
        """
        ids = list(dict.fromkeys(exception_ids))
        self.log_operation("delete_exceptions", mentor_id=mentor_id, count=len(ids))
        with self.transaction():
            schedule = self._load(mentor_id)
            if schedule is None or not ids:
                return []
            working = schedule.copy()
            removed = working.exceptions.delete_many(ids)
            if removed:
                self.repository.delete_exceptions(working.id, removed)
                self._bump_version(working)
            return removed
