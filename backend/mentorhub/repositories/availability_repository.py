# backend/mentorhub/repositories/availability_repository.py
"""
AvailabilityRepository - Schedule, Weekly Pattern and Exception persistence

Maps the availability tables to the domain ``Schedule`` aggregate and back.
Writes are flushed but never committed here; the service wraps each
operation in one transaction and bumps the schedule version with a
compare-and-set update so concurrent editors cannot interleave.
"""

from datetime import date
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.enums import BlockType, ExceptionOverlapPolicy
from ..core.exceptions import RepositoryException
from ..domain.date_exceptions import AvailabilityException, ExceptionResolver, build_override
from ..domain.schedule import Schedule
from ..domain.settings import ScheduleSettings
from ..domain.time_blocks import TimeBlock
from ..domain.weekly_patterns import WeeklyPattern, WeeklyPatternStore
from ..models.availability import (
    MentorAvailabilityException,
    MentorAvailabilitySchedule,
    MentorWeeklyPattern,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def settings_to_columns(settings: ScheduleSettings) -> Dict[str, Any]:
    return {
        "timezone": settings.timezone,
        "default_session_duration": settings.default_session_duration_minutes,
        "buffer_time_minutes": settings.buffer_minutes_between_sessions,
        "min_advance_booking_hours": settings.min_advance_booking_hours,
        "max_advance_booking_days": settings.max_advance_booking_days,
        "default_start_time": settings.default_start_time,
        "default_end_time": settings.default_end_time,
        "is_active": settings.is_active,
        "allow_instant_booking": settings.allow_instant_booking,
        "require_confirmation": settings.require_confirmation,
        "allowed_session_durations": list(settings.allowed_session_durations),
    }


def settings_from_row(row: MentorAvailabilitySchedule) -> ScheduleSettings:
    return ScheduleSettings(
        timezone=row.timezone,
        default_session_duration_minutes=row.default_session_duration,
        buffer_minutes_between_sessions=row.buffer_time_minutes,
        min_advance_booking_hours=row.min_advance_booking_hours,
        max_advance_booking_days=row.max_advance_booking_days,
        default_start_time=row.default_start_time,
        default_end_time=row.default_end_time,
        is_active=row.is_active,
        allow_instant_booking=row.allow_instant_booking,
        require_confirmation=row.require_confirmation,
        allowed_session_durations=tuple(row.allowed_session_durations or ()),
    )


def pattern_from_row(row: MentorWeeklyPattern) -> WeeklyPattern:
    return WeeklyPattern(
        day_of_week=row.day_of_week,
        is_enabled=row.is_enabled,
        time_blocks=tuple(TimeBlock.from_payload(b) for b in row.time_blocks or ()),
    )


def exception_from_row(row: MentorAvailabilityException) -> AvailabilityException:
    blocks = [TimeBlock.from_payload(b) for b in row.time_blocks or ()]
    return AvailabilityException(
        id=row.id,
        start_date=row.start_date,
        end_date=row.end_date,
        override=build_override(BlockType(row.type), row.is_full_day, blocks),
        reason=row.reason,
        created_at=row.created_at,
    )


class AvailabilityRepository(BaseRepository[MentorAvailabilitySchedule]):
    """Repository for a mentor's availability schedule aggregate."""

    def __init__(self, db: Session):
        """Initialize repository."""
        super().__init__(db, MentorAvailabilitySchedule)

    # Schedule Operations

    def get_by_mentor(self, mentor_id: str) -> Optional[MentorAvailabilitySchedule]:
        """
        Get the schedule row for a mentor with patterns and exceptions loaded.

        Always re-read from the database: bulk updates and deletes bypass
        the identity map.

        Args:
            mentor_id: The mentor ID

        Returns:
            Schedule row or None if the mentor has not set one up
        """
        try:
            return (
                self.db.query(MentorAvailabilitySchedule)
                .options(
                    selectinload(MentorAvailabilitySchedule.weekly_patterns),
                    selectinload(MentorAvailabilitySchedule.exceptions),
                )
                .filter(MentorAvailabilitySchedule.mentor_id == mentor_id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting schedule for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get schedule: {str(e)}")

    def load_schedule(
        self,
        mentor_id: str,
        overlap_policy: ExceptionOverlapPolicy = ExceptionOverlapPolicy.REJECT,
    ) -> Optional[Schedule]:
        """Load the domain aggregate for a mentor, or None."""
        row = self.get_by_mentor(mentor_id)
        if row is None:
            return None
        return Schedule(
            mentor_id,
            settings_from_row(row),
            WeeklyPatternStore(pattern_from_row(p) for p in row.weekly_patterns),
            ExceptionResolver((exception_from_row(e) for e in row.exceptions), overlap_policy),
            id=row.id,
            version=row.version,
        )

    def create_schedule(self, schedule: Schedule) -> MentorAvailabilitySchedule:
        """
        Insert the settings row, all weekly patterns and any exceptions.

        Raises:
            RepositoryException: If a schedule already exists for the mentor
        """
        try:
            row = MentorAvailabilitySchedule(
                mentor_id=schedule.mentor_id,
                version=1,
                **settings_to_columns(schedule.settings),
            )
            self.db.add(row)
            self.db.flush()
            for pattern in schedule.weekly.stored_patterns():
                self.db.add(
                    MentorWeeklyPattern(
                        schedule_id=row.id,
                        day_of_week=pattern.day_of_week,
                        is_enabled=pattern.is_enabled,
                        time_blocks=[b.to_payload() for b in pattern.time_blocks],
                    )
                )
            for exception in schedule.exceptions.exceptions():
                self.add_exception(row.id, exception)
            self.db.flush()
            return row
        except IntegrityError as e:
            self.logger.error(f"Integrity error creating schedule: {str(e)}")
            raise RepositoryException(f"Schedule already exists: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating schedule: {str(e)}")
            raise RepositoryException(f"Failed to create schedule: {str(e)}")

    def bump_version(self, schedule_id: str, expected_version: int) -> bool:
        """
        Compare-and-set the schedule version.

        Returns:
            True if the row still had ``expected_version`` and was bumped
        """
        try:
            result = self.db.execute(
                update(MentorAvailabilitySchedule)
                .where(
                    and_(
                        MentorAvailabilitySchedule.id == schedule_id,
                        MentorAvailabilitySchedule.version == expected_version,
                    )
                )
                .values(version=MentorAvailabilitySchedule.version + 1)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error bumping schedule version: {str(e)}")
            raise RepositoryException(f"Failed to update schedule version: {str(e)}")

    def lock_schedule(self, schedule_id: str) -> None:
        """
        Take a row lock on the schedule for the rest of the transaction.

        Serializes booking decisions per mentor on databases with row locks.
        """
        try:
            self.db.query(MentorAvailabilitySchedule.id).filter(
                MentorAvailabilitySchedule.id == schedule_id
            ).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock schedule: {str(e)}")

    def save_settings(self, schedule_id: str, settings: ScheduleSettings) -> None:
        try:
            self.db.execute(
                update(MentorAvailabilitySchedule)
                .where(MentorAvailabilitySchedule.id == schedule_id)
                .values(**settings_to_columns(settings))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving schedule settings: {str(e)}")
            raise RepositoryException(f"Failed to save settings: {str(e)}")

    # Weekly Pattern Operations

    def save_weekly_patterns(self, schedule_id: str, patterns: Iterable[WeeklyPattern]) -> int:
        """
        Upsert one row per day of week.

        Returns:
            Number of days written
        """
        try:
            existing = {
                row.day_of_week: row
                for row in self.db.query(MentorWeeklyPattern)
                .filter(MentorWeeklyPattern.schedule_id == schedule_id)
                .all()
            }
            written = 0
            for pattern in patterns:
                payload = [b.to_payload() for b in pattern.time_blocks]
                row = existing.get(pattern.day_of_week)
                if row is None:
                    self.db.add(
                        MentorWeeklyPattern(
                            schedule_id=schedule_id,
                            day_of_week=pattern.day_of_week,
                            is_enabled=pattern.is_enabled,
                            time_blocks=payload,
                        )
                    )
                else:
                    row.is_enabled = pattern.is_enabled
                    row.time_blocks = payload
                written += 1
            self.db.flush()
            return written
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving weekly patterns: {str(e)}")
            raise RepositoryException(f"Failed to save weekly patterns: {str(e)}")

    def delete_weekly_patterns_except(self, schedule_id: str, keep_days: Iterable[int]) -> int:
        """Drop pattern rows for days not in ``keep_days`` (full-week replace)."""
        try:
            return (
                self.db.query(MentorWeeklyPattern)
                .filter(
                    MentorWeeklyPattern.schedule_id == schedule_id,
                    MentorWeeklyPattern.day_of_week.notin_(list(keep_days)),
                )
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error pruning weekly patterns: {str(e)}")
            raise RepositoryException(f"Failed to prune weekly patterns: {str(e)}")

    # Exception Operations

    def add_exception(
        self, schedule_id: str, exception: AvailabilityException
    ) -> MentorAvailabilityException:
        try:
            row = MentorAvailabilityException(
                id=exception.id,
                schedule_id=schedule_id,
                start_date=exception.start_date,
                end_date=exception.end_date,
                type=exception.type.value,
                reason=exception.reason,
                is_full_day=exception.is_full_day,
                time_blocks=[b.to_payload() for b in exception.time_blocks] or None,
                created_at=exception.created_at,
            )
            self.db.add(row)
            self.db.flush()
            return row
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating exception: {str(e)}")
            raise RepositoryException(f"Failed to create exception: {str(e)}")

    def delete_exceptions(self, schedule_id: str, exception_ids: Iterable[str]) -> int:
        """
        Delete exceptions by id, scoped to one schedule.

        Unknown ids are ignored.

        Returns:
            Number of rows deleted
        """
        ids = list(exception_ids)
        if not ids:
            return 0
        try:
            return (
                self.db.query(MentorAvailabilityException)
                .filter(
                    MentorAvailabilityException.schedule_id == schedule_id,
                    MentorAvailabilityException.id.in_(ids),
                )
                .delete(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting exceptions: {str(e)}")
            raise RepositoryException(f"Failed to delete exceptions: {str(e)}")

    def list_exceptions(
        self,
        schedule_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[MentorAvailabilityException]:
        """Exceptions of a schedule, optionally only those intersecting a range."""
        try:
            query = self.db.query(MentorAvailabilityException).filter(
                MentorAvailabilityException.schedule_id == schedule_id
            )
            if start_date is not None and end_date is not None:
                query = query.filter(
                    MentorAvailabilityException.start_date <= end_date,
                    MentorAvailabilityException.end_date >= start_date,
                )
            return query.order_by(MentorAvailabilityException.start_date).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing exceptions: {str(e)}")
            raise RepositoryException(f"Failed to list exceptions: {str(e)}")
