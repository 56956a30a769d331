"""
Repository layer for the MentorHub availability service.

Repositories own all SQLAlchemy queries and map rows to domain objects.
They flush but never commit; services own the transaction boundary.
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .template_repository import TemplateRepository

__all__ = [
    "BaseRepository",
    "AvailabilityRepository",
    "BookingRepository",
    "TemplateRepository",
]
