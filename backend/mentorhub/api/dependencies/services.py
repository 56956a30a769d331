# backend/mentorhub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.template_service import TemplateService
from .database import get_db

logger = logging.getLogger(__name__)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """
    Get availability service instance.

    Args:
        db: Database session

    Returns:
        AvailabilityService bound to the request's session
    """
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Get booking service instance for slot queries and booking requests."""
    return BookingService(db)


def get_template_service(
    db: Session = Depends(get_db),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> TemplateService:
    """Get template service sharing the request's availability service."""
    return TemplateService(db, availability_service=availability_service)
