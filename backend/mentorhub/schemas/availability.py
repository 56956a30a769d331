# backend/mentorhub/schemas/availability.py
"""
Availability schemas for the MentorHub platform.

Request DTOs only check shape and formats ("HH:MM" strings, day numbers).
Ordering, overlap and capacity rules live in the domain validator so every
violation can be reported in one response.
"""

import datetime
from typing import Any, List, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from ..core.enums import (
    AvailabilitySource,
    BlockType,
    BookingStatus,
    ExceptionPreset,
    QuickSetupPreset,
)
from ..core.timezone_utils import ensure_aware
from ..domain.date_exceptions import AvailabilityException
from ..domain.schedule import DayAvailability, Schedule
from ..domain.settings import ScheduleSettings
from ..domain.slots import Slot
from ..domain.templates import Template, TemplateConfiguration, summarize_patterns
from ..domain.time_blocks import TimeBlock
from ..domain.weekly_patterns import WeeklyPattern
from ..utils.time_helpers import is_valid_hhmm
from ._strict_base import StrictModel, StrictRequestModel
from .base import StandardizedModel

# Type aliases for clarity
DateType = datetime.date
DateTimeType = datetime.datetime
DateOrInstant = Union[DateType, DateTimeType]


def _check_hhmm(value: str, *, allow_end_of_day: bool = False) -> str:
    if not is_valid_hhmm(value, allow_end_of_day=allow_end_of_day):
        raise ValueError(f"Invalid time format: {value}. Use HH:MM format.")
    return value


# Time blocks and weekly patterns


class TimeBlockSchema(StrictModel):
    """A block within a day, e.g. ``{"startTime": "09:00", "endTime": "12:00"}``."""

    start_time: str
    end_time: str
    type: BlockType = BlockType.AVAILABLE
    max_concurrent_bookings: Optional[int] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        return _check_hhmm(v)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str) -> str:
        """End of day may be written as "24:00"."""
        return _check_hhmm(v, allow_end_of_day=True)

    def to_domain(self) -> TimeBlock:
        return TimeBlock.from_hhmm(
            self.start_time, self.end_time, BlockType(self.type), self.max_concurrent_bookings
        )

    @classmethod
    def from_domain(cls, block: TimeBlock) -> "TimeBlockSchema":
        return cls(
            start_time=block.start_time,
            end_time=block.end_time,
            type=block.type,
            max_concurrent_bookings=block.max_bookings,
        )


class WeeklyPatternSchema(StrictModel):
    """One day of the recurring week (0 = Sunday)."""

    day_of_week: int = Field(..., ge=0, le=6)
    is_enabled: bool = False
    time_blocks: List[TimeBlockSchema] = Field(default_factory=list)

    def to_domain(self) -> WeeklyPattern:
        return WeeklyPattern(
            day_of_week=self.day_of_week,
            is_enabled=self.is_enabled,
            time_blocks=tuple(b.to_domain() for b in self.time_blocks),
        )

    @classmethod
    def from_domain(cls, pattern: WeeklyPattern) -> "WeeklyPatternSchema":
        return cls(
            day_of_week=pattern.day_of_week,
            is_enabled=pattern.is_enabled,
            time_blocks=[TimeBlockSchema.from_domain(b) for b in pattern.time_blocks],
        )


# Settings and whole-schedule payloads


class ScheduleSettingsSchema(StrictModel):
    """Per-mentor settings; ranges are checked by the domain validator."""

    timezone: str = "UTC"
    default_session_duration_minutes: int = 60
    buffer_minutes_between_sessions: int = 15
    min_advance_booking_hours: int = 24
    max_advance_booking_days: int = 90
    default_start_time: str = "09:00"
    default_end_time: str = "17:00"
    is_active: bool = True
    allow_instant_booking: bool = True
    require_confirmation: bool = False
    allowed_session_durations: List[int] = Field(default_factory=list)

    def to_domain(self) -> ScheduleSettings:
        return ScheduleSettings(
            timezone=self.timezone,
            default_session_duration_minutes=self.default_session_duration_minutes,
            buffer_minutes_between_sessions=self.buffer_minutes_between_sessions,
            min_advance_booking_hours=self.min_advance_booking_hours,
            max_advance_booking_days=self.max_advance_booking_days,
            default_start_time=self.default_start_time,
            default_end_time=self.default_end_time,
            is_active=self.is_active,
            allow_instant_booking=self.allow_instant_booking,
            require_confirmation=self.require_confirmation,
            allowed_session_durations=tuple(self.allowed_session_durations),
        )

    @classmethod
    def from_domain(cls, settings: ScheduleSettings) -> "ScheduleSettingsSchema":
        return cls(
            timezone=settings.timezone,
            default_session_duration_minutes=settings.default_session_duration_minutes,
            buffer_minutes_between_sessions=settings.buffer_minutes_between_sessions,
            min_advance_booking_hours=settings.min_advance_booking_hours,
            max_advance_booking_days=settings.max_advance_booking_days,
            default_start_time=settings.default_start_time,
            default_end_time=settings.default_end_time,
            is_active=settings.is_active,
            allow_instant_booking=settings.allow_instant_booking,
            require_confirmation=settings.require_confirmation,
            allowed_session_durations=list(settings.allowed_session_durations),
        )


class ScheduleSettingsUpdate(StrictRequestModel):
    """Partial settings update; omitted fields keep their current value."""

    timezone: Optional[str] = None
    default_session_duration_minutes: Optional[int] = None
    buffer_minutes_between_sessions: Optional[int] = None
    min_advance_booking_hours: Optional[int] = None
    max_advance_booking_days: Optional[int] = None
    default_start_time: Optional[str] = None
    default_end_time: Optional[str] = None
    is_active: Optional[bool] = None
    allow_instant_booking: Optional[bool] = None
    require_confirmation: Optional[bool] = None
    allowed_session_durations: Optional[List[int]] = None

    def to_updates(self) -> dict:
        updates = self.model_dump(exclude_none=True)
        if "allowed_session_durations" in updates:
            updates["allowed_session_durations"] = tuple(updates["allowed_session_durations"])
        return updates


class AvailabilityScheduleRequest(StrictRequestModel):
    """Full save: settings plus the whole week."""

    schedule: ScheduleSettingsSchema
    weekly_patterns: List[WeeklyPatternSchema] = Field(default_factory=list)
    version: Optional[int] = Field(None, ge=0)


class ScheduleInfoResponse(ScheduleSettingsSchema):
    id: Optional[str] = None
    mentor_id: str
    version: int = 0


class AvailabilityScheduleResponse(StandardizedModel):
    """
    GET/PUT response. ``schedule`` is null when the mentor never saved one.
    """

    schedule: Optional[ScheduleInfoResponse] = None
    weekly_patterns: List[WeeklyPatternSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, schedule: Optional[Schedule]) -> "AvailabilityScheduleResponse":
        if schedule is None:
            return cls(schedule=None, weekly_patterns=[])
        info = ScheduleSettingsSchema.from_domain(schedule.settings).model_dump()
        return cls(
            schedule=ScheduleInfoResponse(
                id=schedule.id,
                mentor_id=schedule.mentor_id,
                version=schedule.version,
                **info,
            ),
            weekly_patterns=[
                WeeklyPatternSchema.from_domain(p) for p in schedule.weekly.patterns()
            ],
        )


class BlockRemovedResponse(AvailabilityScheduleResponse):
    removed: bool


# Weekly pattern edits


class DayEnabledRequest(StrictRequestModel):
    is_enabled: bool


class QuickSetupRequest(StrictRequestModel):
    """Apply one block list to a preset day group or an explicit list of days."""

    preset: Optional[QuickSetupPreset] = None
    days_of_week: Optional[List[int]] = None
    time_blocks: Optional[List[TimeBlockSchema]] = None

    def blocks(self) -> Optional[List[TimeBlock]]:
        if self.time_blocks is None:
            return None
        return [b.to_domain() for b in self.time_blocks]


class CopyDayRequest(StrictRequestModel):
    target_days: List[int] = Field(..., min_length=1)


# Effective availability and slots


class EffectiveAvailabilityResponse(StandardizedModel):
    date: DateType
    source: AvailabilitySource
    time_blocks: List[TimeBlockSchema]
    exception_id: Optional[str] = None

    @classmethod
    def from_domain(cls, day: DayAvailability) -> "EffectiveAvailabilityResponse":
        return cls(
            date=day.date,
            source=day.source,
            time_blocks=[TimeBlockSchema.from_domain(b) for b in day.blocks],
            exception_id=day.exception.id if day.exception else None,
        )


class SlotResponse(StandardizedModel):
    date: DateType
    start: DateTimeType
    end: DateTimeType
    is_available: bool
    remaining_capacity: int
    reason: Optional[str] = None

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotResponse":
        return cls(
            date=slot.date,
            start=slot.start,
            end=slot.end,
            is_available=slot.is_available,
            remaining_capacity=slot.remaining_capacity,
            reason=slot.reason,
        )


class SlotListResponse(StandardizedModel):
    mentor_id: str
    slots: List[SlotResponse]


# Bookings


class BookingRequest(StrictRequestModel):
    mentee_id: str = Field(..., min_length=1)
    start: DateTimeType
    end: DateTimeType
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("end")
    @classmethod
    def validate_time_order(cls, v: DateTimeType, info: Any) -> DateTimeType:
        """Ensure end is after start."""
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start")
            and ensure_aware(v) <= ensure_aware(info.data["start"])
        ):
            raise ValueError("End must be after start")
        return v


class BookingResponse(StandardizedModel):
    id: str
    mentor_id: str
    mentee_id: str
    start_at: DateTimeType
    end_at: DateTimeType
    status: BookingStatus
    notes: Optional[str] = None
    created_at: DateTimeType

    model_config = ConfigDict(from_attributes=True)


# Exceptions


class ExceptionCreate(StrictRequestModel):
    """
    Date exception. Dates may be plain dates or instants; instants are read
    as dates in the mentor's timezone.
    """

    start_date: DateOrInstant
    end_date: DateOrInstant
    type: BlockType = BlockType.BLOCKED
    reason: Optional[str] = Field(None, max_length=255)
    is_full_day: bool = True
    time_blocks: Optional[List[TimeBlockSchema]] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_plain_dates(cls, v: Any) -> Any:
        """Keep "YYYY-MM-DD" a calendar date instead of UTC midnight."""
        if isinstance(v, str) and "T" not in v and " " not in v.strip():
            return datetime.date.fromisoformat(v.strip())
        return v

    def blocks(self) -> Optional[List[TimeBlock]]:
        if self.time_blocks is None:
            return None
        return [b.to_domain() for b in self.time_blocks]


class ExceptionResponse(StandardizedModel):
    id: str
    start_date: DateType
    end_date: DateType
    type: BlockType
    reason: Optional[str] = None
    is_full_day: bool
    time_blocks: List[TimeBlockSchema] = Field(default_factory=list)
    created_at: DateTimeType

    @classmethod
    def from_domain(cls, exception: AvailabilityException) -> "ExceptionResponse":
        return cls(
            id=exception.id,
            start_date=exception.start_date,
            end_date=exception.end_date,
            type=exception.type,
            reason=exception.reason,
            is_full_day=exception.is_full_day,
            time_blocks=[TimeBlockSchema.from_domain(b) for b in exception.time_blocks],
            created_at=exception.created_at,
        )


class ExceptionListResponse(StandardizedModel):
    exceptions: List[ExceptionResponse]


class ExceptionDeleteRequest(StrictRequestModel):
    exception_ids: List[str] = Field(default_factory=list)


class ExceptionDeleteResponse(StandardizedModel):
    deleted_ids: List[str]


class QuickAddExceptionRequest(StrictRequestModel):
    preset: ExceptionPreset


# Templates


class TemplateCreate(StrictRequestModel):
    """Save the current schedule under a name."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)


class TemplateApplyRequest(StrictRequestModel):
    template_id: str = Field(..., min_length=1)


class TemplateConfigurationResponse(StandardizedModel):
    default_session_duration_minutes: int
    buffer_minutes_between_sessions: int
    min_advance_booking_hours: int
    max_advance_booking_days: int
    allow_instant_booking: bool
    require_confirmation: bool
    timezone: Optional[str] = None
    weekly_patterns: List[WeeklyPatternSchema]

    @classmethod
    def from_domain(cls, config: TemplateConfiguration) -> "TemplateConfigurationResponse":
        return cls(
            default_session_duration_minutes=config.default_session_duration_minutes,
            buffer_minutes_between_sessions=config.buffer_minutes_between_sessions,
            min_advance_booking_hours=config.min_advance_booking_hours,
            max_advance_booking_days=config.max_advance_booking_days,
            allow_instant_booking=config.allow_instant_booking,
            require_confirmation=config.require_confirmation,
            timezone=config.timezone,
            weekly_patterns=[WeeklyPatternSchema.from_domain(p) for p in config.weekly_patterns],
        )


class TemplateResponse(StandardizedModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    is_premade: bool
    usage_count: int = 0
    enabled_days: List[int]
    configuration: TemplateConfigurationResponse

    @classmethod
    def from_domain(cls, template: Template) -> "TemplateResponse":
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            is_premade=template.is_premade,
            usage_count=template.usage_count,
            enabled_days=summarize_patterns(template.configuration.weekly_patterns),
            configuration=TemplateConfigurationResponse.from_domain(template.configuration),
        )


class TemplateListResponse(StandardizedModel):
    templates: List[TemplateResponse]
