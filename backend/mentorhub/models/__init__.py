"""
Database models for the MentorHub availability service.

The models are organized by functionality:
- Availability schedules, weekly patterns and date exceptions
- Mentoring sessions (consulted for buffer and capacity rules)
- Saved schedule templates
"""

from .availability import (
    MentorAvailabilityException,
    MentorAvailabilitySchedule,
    MentorWeeklyPattern,
)
from .booking import MentorSession
from .template import AvailabilityTemplate

__all__ = [
    "MentorAvailabilitySchedule",
    "MentorWeeklyPattern",
    "MentorAvailabilityException",
    "MentorSession",
    "AvailabilityTemplate",
]
