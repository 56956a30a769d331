"""Time block value object shared by the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.constants import MINUTES_PER_DAY
from ..core.enums import BlockType
from ..utils.time_helpers import hhmm_to_minutes, minutes_to_hhmm


@dataclass(frozen=True)
class TimeBlock:
    """
    A contiguous same-day interval, in minutes since local midnight.

    ``end_minute`` may be 1440 (midnight at the end of the day). Construction
    does not validate; the validator reports every problem with a block so
    callers can show them all at once.
    """

    start_minute: int
    end_minute: int
    type: BlockType = BlockType.AVAILABLE
    max_bookings: Optional[int] = None

    @classmethod
    def from_hhmm(
        cls,
        start_time: str,
        end_time: str,
        type: BlockType = BlockType.AVAILABLE,
        max_bookings: Optional[int] = None,
    ) -> "TimeBlock":
        return cls(
            start_minute=hhmm_to_minutes(start_time),
            end_minute=hhmm_to_minutes(end_time),
            type=BlockType(type),
            max_bookings=max_bookings,
        )

    @classmethod
    def full_day(cls, type: BlockType = BlockType.AVAILABLE) -> "TimeBlock":
        return cls(0, MINUTES_PER_DAY, BlockType(type))

    @property
    def start_time(self) -> str:
        return minutes_to_hhmm(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_hhmm(self.end_minute)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def capacity(self) -> int:
        """Concurrent bookings allowed; absent capacity on AVAILABLE means 1."""
        if self.type != BlockType.AVAILABLE:
            return 0
        return self.max_bookings if self.max_bookings is not None else 1

    def overlaps(self, other: "TimeBlock") -> bool:
        return self.start_minute < other.end_minute and self.end_minute > other.start_minute

    def covers(self, start_minute: int, end_minute: int) -> bool:
        return self.start_minute <= start_minute and end_minute <= self.end_minute

    def label(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def to_payload(self) -> dict[str, Any]:
        """Serialize for JSON columns and the wire ("HH:MM" strings)."""
        payload: dict[str, Any] = {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "type": self.type.value,
        }
        if self.max_bookings is not None:
            payload["maxConcurrentBookings"] = self.max_bookings
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TimeBlock":
        """Inverse of ``to_payload``; also reads the legacy ``maxBookings`` key."""
        max_bookings = payload.get("maxConcurrentBookings", payload.get("maxBookings"))
        return cls.from_hhmm(
            payload["startTime"],
            payload["endTime"],
            BlockType(payload.get("type", BlockType.AVAILABLE.value)),
            max_bookings,
        )
