# backend/mentorhub/models/availability.py
"""
Availability models for the MentorHub platform.

This module defines the database models behind a mentor's availability
schedule: the settings row, one weekly pattern row per day of week, and
date-range exceptions. Time blocks are stored as JSON arrays of
``{"startTime", "endTime", "type", "maxConcurrentBookings"}`` objects.

Classes:
    MentorAvailabilitySchedule: Settings plus optimistic-lock version
    MentorWeeklyPattern: Recurring blocks for one day of week
    MentorAvailabilityException: Date-range override of the weekly pattern
"""

from datetime import datetime, timezone
import logging

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
import ulid

from ..database import Base

logger = logging.getLogger(__name__)

# Cross-database compatible JSON type
json_type = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class MentorAvailabilitySchedule(Base):
    """One availability schedule per mentor; never hard-deleted."""

    __tablename__ = "mentor_availability_schedules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(String(26), nullable=False, unique=True, index=True)

    timezone = Column(String(64), nullable=False, default="UTC")
    default_session_duration = Column(Integer, nullable=False, default=60)
    buffer_time_minutes = Column(Integer, nullable=False, default=15)
    min_advance_booking_hours = Column(Integer, nullable=False, default=24)
    max_advance_booking_days = Column(Integer, nullable=False, default=90)
    default_start_time = Column(String(5), nullable=False, default="09:00")
    default_end_time = Column(String(5), nullable=False, default="17:00")
    is_active = Column(Boolean, nullable=False, default=True)
    allow_instant_booking = Column(Boolean, nullable=False, default=True)
    require_confirmation = Column(Boolean, nullable=False, default=False)
    allowed_session_durations = Column(json_type, nullable=False, default=list)

    # Bumped on every write; compare-and-set guards concurrent editors
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now_utc)

    # Relationships
    weekly_patterns = relationship(
        "MentorWeeklyPattern",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="MentorWeeklyPattern.day_of_week",
    )
    exceptions = relationship(
        "MentorAvailabilityException",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="MentorAvailabilityException.start_date",
    )

    __table_args__ = (
        CheckConstraint(
            "default_session_duration >= 15 AND default_session_duration <= 240",
            name="check_session_duration_range",
        ),
        CheckConstraint(
            "buffer_time_minutes >= 0 AND buffer_time_minutes <= 60",
            name="check_buffer_time_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<MentorAvailabilitySchedule mentor={self.mentor_id} v{self.version}>"


class MentorWeeklyPattern(Base):
    """Recurring blocks for one day of week (0 = Sunday)."""

    __tablename__ = "mentor_weekly_patterns"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(
        String(26),
        ForeignKey("mentor_availability_schedules.id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week = Column(Integer, nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=False)
    time_blocks = Column(json_type, nullable=False, default=list)

    schedule = relationship("MentorAvailabilitySchedule", back_populates="weekly_patterns")

    __table_args__ = (
        UniqueConstraint("schedule_id", "day_of_week", name="unique_schedule_day_of_week"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="check_day_of_week_range"),
    )

    def __repr__(self) -> str:
        return f"<MentorWeeklyPattern day={self.day_of_week} enabled={self.is_enabled}>"


class MentorAvailabilityException(Base):
    """Inclusive date range overriding the weekly pattern."""

    __tablename__ = "mentor_availability_exceptions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(
        String(26),
        ForeignKey("mentor_availability_schedules.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    type = Column(String(20), nullable=False, default="BLOCKED")
    reason = Column(String(255), nullable=True)
    is_full_day = Column(Boolean, nullable=False, default=True)
    time_blocks = Column(json_type, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    schedule = relationship("MentorAvailabilitySchedule", back_populates="exceptions")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="check_exception_date_order"),
        Index("idx_availability_exceptions_range", "schedule_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<MentorAvailabilityException {self.start_date}..{self.end_date} {self.type}>"
