# backend/mentorhub/models/template.py
"""Saved schedule templates owned by a mentor."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
import ulid

from ..database import Base

json_type = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class AvailabilityTemplate(Base):
    __tablename__ = "availability_templates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(String(26), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    # {"settings": {...}, "weeklyPatterns": [...]}
    configuration = Column(json_type, nullable=False)
    usage_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (Index("idx_availability_templates_mentor", "mentor_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<AvailabilityTemplate {self.name!r} mentor={self.mentor_id}>"
