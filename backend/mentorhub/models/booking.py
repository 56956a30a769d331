# backend/mentorhub/models/booking.py
"""
Mentoring session model.

Sessions are stored as absolute UTC instants; the availability engine only
needs their span and status to apply buffer and capacity rules.
"""

from datetime import datetime, timezone
import logging

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, Text
import ulid

from ..core.enums import BookingStatus
from ..database import Base

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class MentorSession(Base):
    """A booked (or requested) session between a mentee and a mentor."""

    __tablename__ = "mentor_sessions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(String(26), nullable=False)
    mentee_id = Column(String(26), nullable=False)

    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("start_at < end_at", name="check_session_time_order"),
        Index("idx_mentor_sessions_mentor_start", "mentor_id", "start_at"),
    )

    def __repr__(self) -> str:
        return f"<MentorSession {self.mentor_id} {self.start_at} ({self.status})>"
