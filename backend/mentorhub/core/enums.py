# backend/mentorhub/core/enums.py
"""
Core enums for the MentorHub availability service.

This module contains enumeration types used throughout the application
for type safety and consistency. All enums subclass ``str`` so they
serialize as their plain values on the wire and in JSON columns.
"""

from enum import Enum


class BlockType(str, Enum):
    """Semantic type of a time block within a day."""

    AVAILABLE = "AVAILABLE"
    BREAK = "BREAK"
    BUFFER = "BUFFER"
    BLOCKED = "BLOCKED"


class BookingStatus(str, Enum):
    """Lifecycle states of a mentoring session booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class OverlapKind(str, Enum):
    """How two overlapping time blocks relate to each other."""

    FULL = "full"
    CONTAINS = "contains"
    CONTAINED = "contained"
    PARTIAL = "partial"


class QuickSetupPreset(str, Enum):
    """Day groups targeted by the weekly quick setup."""

    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    ALL = "all"


class ExceptionPreset(str, Enum):
    """Quick-add exception presets."""

    VACATION = "vacation"
    HOLIDAY = "holiday"
    CONFERENCE = "conference"


class AvailabilitySource(str, Enum):
    """Where the effective availability for a date came from."""

    UNSET = "unset"
    INACTIVE = "inactive"
    EXCEPTION = "exception"
    WEEKLY = "weekly"
    DISABLED = "disabled"


class ExceptionOverlapPolicy(str, Enum):
    """What to do when a new exception intersects an existing one."""

    REJECT = "reject"
    LATEST_WINS = "latest_wins"
