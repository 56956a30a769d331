"""Conversions between "HH:MM" wire strings and minutes since midnight."""

import re

from ..core.constants import MINUTES_PER_DAY

_HHMM_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
_END_OF_DAY = "24:00"


def is_valid_hhmm(value: str, *, allow_end_of_day: bool = False) -> bool:
    """Check a 24-hour "HH:MM" string ("24:00" only when allowed)."""
    if allow_end_of_day and value == _END_OF_DAY:
        return True
    return bool(_HHMM_RE.match(value))


def hhmm_to_minutes(value: str) -> int:
    """
    Parse "HH:MM" into minutes since midnight.

    "24:00" is accepted as the end-of-day sentinel and returns 1440.

    Raises:
        ValueError: If the string is not a valid 24-hour time
    """
    if value == _END_OF_DAY:
        return MINUTES_PER_DAY
    match = _HHMM_RE.match(value)
    if not match:
        raise ValueError(f"Invalid time format: {value}. Use HH:MM format.")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_hhmm(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM" (1440 -> "24:00")."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"

