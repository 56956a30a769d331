# backend/mentorhub/repositories/booking_repository.py
"""
BookingRepository - Mentoring session data access

Only what the availability engine needs: the sessions of a mentor around a
time range, for buffer and capacity checks, and inserting new sessions.
"""

from datetime import datetime, timezone
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..core.timezone_utils import ensure_aware
from ..domain.booking_window import ExistingBooking
from ..models.booking import MentorSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _utc(dt: datetime) -> datetime:
    # Stored as UTC so backends without timezone support compare correctly
    return ensure_aware(dt).astimezone(timezone.utc)


def to_existing_booking(row: MentorSession) -> ExistingBooking:
    return ExistingBooking(
        start=row.start_at,
        end=row.end_at,
        status=BookingStatus(row.status),
        id=row.id,
    )


class BookingRepository(BaseRepository[MentorSession]):
    def __init__(self, db: Session):
        super().__init__(db, MentorSession)

    def get_active_in_range(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> List[MentorSession]:
        """
        Non-cancelled sessions of a mentor that intersect ``[range_start, range_end)``.

        Callers widen the range by the buffer time themselves.
        """
        range_start, range_end = _utc(range_start), _utc(range_end)
        try:
            return (
                self.db.query(MentorSession)
                .filter(
                    MentorSession.mentor_id == mentor_id,
                    MentorSession.status != BookingStatus.CANCELLED.value,
                    MentorSession.start_at < range_end,
                    MentorSession.end_at > range_start,
                )
                .order_by(MentorSession.start_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sessions for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get sessions: {str(e)}")

    def create_session(
        self,
        mentor_id: str,
        mentee_id: str,
        start_at: datetime,
        end_at: datetime,
        status: BookingStatus,
        notes: Optional[str] = None,
    ) -> MentorSession:
        return self.create(
            mentor_id=mentor_id,
            mentee_id=mentee_id,
            start_at=_utc(start_at),
            end_at=_utc(end_at),
            status=status.value,
            notes=notes,
        )
