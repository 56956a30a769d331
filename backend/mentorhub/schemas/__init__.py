# backend/mentorhub/schemas/__init__.py
"""
Pydantic schemas for the MentorHub availability API.

Wire format is camelCase; see ``base.StandardizedModel``.
"""

from .availability import (
    AvailabilityScheduleRequest,
    AvailabilityScheduleResponse,
    BookingRequest,
    BookingResponse,
    EffectiveAvailabilityResponse,
    ExceptionCreate,
    ExceptionResponse,
    ScheduleSettingsSchema,
    ScheduleSettingsUpdate,
    SlotResponse,
    TemplateResponse,
    TimeBlockSchema,
    WeeklyPatternSchema,
)

__all__ = [
    "AvailabilityScheduleRequest",
    "AvailabilityScheduleResponse",
    "BookingRequest",
    "BookingResponse",
    "EffectiveAvailabilityResponse",
    "ExceptionCreate",
    "ExceptionResponse",
    "ScheduleSettingsSchema",
    "ScheduleSettingsUpdate",
    "SlotResponse",
    "TemplateResponse",
    "TimeBlockSchema",
    "WeeklyPatternSchema",
]
