"""Application-wide constants for the MentorHub availability service."""

from __future__ import annotations

BRAND_NAME = "MentorHub"

API_TITLE = f"{BRAND_NAME} Availability API"
API_DESCRIPTION = (
    "Mentor availability scheduling: weekly patterns, date exceptions, "
    "booking windows and bookable slots."
)
API_VERSION = "1.0.0"
API_PREFIX = "/api/v1"

# Minutes in a day; an end time of 24:00 is stored as this value
MINUTES_PER_DAY = 24 * 60

# Schedule setting bounds
MIN_SESSION_DURATION = 15  # minutes
MAX_SESSION_DURATION = 240  # minutes (4 hours)
MIN_BUFFER_TIME = 0  # minutes
MAX_BUFFER_TIME = 60  # minutes
MIN_ADVANCE_BOOKING_HOURS = 0
MAX_ADVANCE_BOOKING_HOURS = 168  # one week
MIN_ADVANCE_BOOKING_DAYS = 1
MAX_ADVANCE_BOOKING_DAYS = 365

# Schedule setting defaults
DEFAULT_SESSION_DURATION = 60
DEFAULT_BUFFER_TIME = 15
DEFAULT_MIN_ADVANCE_BOOKING_HOURS = 24
DEFAULT_MAX_ADVANCE_BOOKING_DAYS = 90
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"

# Text constraints
MAX_REASON_LENGTH = 255
MAX_TEMPLATE_NAME_LENGTH = 100
MAX_TEMPLATE_DESCRIPTION_LENGTH = 500

# Day of week mapping (0 = Sunday)
DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
WEEKDAYS = (1, 2, 3, 4, 5)
WEEKEND_DAYS = (0, 6)

# Error messages
ERROR_SCHEDULE_NOT_FOUND = "No availability schedule found. Please set up your availability."
ERROR_SCHEDULE_EXISTS = "An availability schedule already exists for this mentor"
ERROR_SCHEDULE_VERSION_CONFLICT = (
    "The availability schedule was modified by another request. Reload and try again."
)
