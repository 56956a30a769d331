"""
Named schedule templates.

A template bundles a subset of the schedule settings with a full week of
patterns. Four premade templates ship with the service; mentors can save
their own through a ``TemplateStorage`` implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from ..core.constants import MAX_TEMPLATE_DESCRIPTION_LENGTH, MAX_TEMPLATE_NAME_LENGTH
from ..core.enums import BlockType
from ..core.exceptions import NotFoundException, ScheduleValidationException
from ..core.timezone_utils import now_utc
from ..core.ulid_helper import generate_ulid
from .schedule import Schedule
from .settings import ScheduleSettings
from .time_blocks import TimeBlock
from .weekly_patterns import WeeklyPattern, validate_weekly_patterns

_AVAILABLE = BlockType.AVAILABLE


@dataclass(frozen=True)
class TemplateConfiguration:
    default_session_duration_minutes: int
    buffer_minutes_between_sessions: int
    min_advance_booking_hours: int
    max_advance_booking_days: int
    allow_instant_booking: bool = True
    require_confirmation: bool = False
    timezone: Optional[str] = None
    weekly_patterns: Tuple[WeeklyPattern, ...] = ()

    def settings_updates(self) -> Dict[str, object]:
        return {
            "default_session_duration_minutes": self.default_session_duration_minutes,
            "buffer_minutes_between_sessions": self.buffer_minutes_between_sessions,
            "min_advance_booking_hours": self.min_advance_booking_hours,
            "max_advance_booking_days": self.max_advance_booking_days,
            "allow_instant_booking": self.allow_instant_booking,
            "require_confirmation": self.require_confirmation,
            "timezone": self.timezone,
        }

    def to_payload(self) -> Dict[str, Any]:
        return {
            "settings": {
                "defaultSessionDurationMinutes": self.default_session_duration_minutes,
                "bufferMinutesBetweenSessions": self.buffer_minutes_between_sessions,
                "minAdvanceBookingHours": self.min_advance_booking_hours,
                "maxAdvanceBookingDays": self.max_advance_booking_days,
                "allowInstantBooking": self.allow_instant_booking,
                "requireConfirmation": self.require_confirmation,
                "timezone": self.timezone,
            },
            "weeklyPatterns": [p.to_payload() for p in self.weekly_patterns],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TemplateConfiguration":
        data = payload.get("settings") or {}
        return cls(
            default_session_duration_minutes=int(data["defaultSessionDurationMinutes"]),
            buffer_minutes_between_sessions=int(data["bufferMinutesBetweenSessions"]),
            min_advance_booking_hours=int(data["minAdvanceBookingHours"]),
            max_advance_booking_days=int(data["maxAdvanceBookingDays"]),
            allow_instant_booking=bool(data.get("allowInstantBooking", True)),
            require_confirmation=bool(data.get("requireConfirmation", False)),
            timezone=data.get("timezone"),
            weekly_patterns=tuple(
                WeeklyPattern.from_payload(p) for p in payload.get("weeklyPatterns") or ()
            ),
        )


@dataclass(frozen=True)
class Template:
    name: str
    configuration: TemplateConfiguration
    description: str = ""
    id: Optional[str] = None
    is_premade: bool = False
    usage_count: int = 0
    created_at: Optional[datetime] = None

    def validate(self) -> List[str]:
        errors: List[str] = []
        if not self.name.strip():
            errors.append("Template name is required")
        elif len(self.name) > MAX_TEMPLATE_NAME_LENGTH:
            errors.append(f"Template name must be at most {MAX_TEMPLATE_NAME_LENGTH} characters")
        if len(self.description) > MAX_TEMPLATE_DESCRIPTION_LENGTH:
            errors.append(
                f"Template description must be at most {MAX_TEMPLATE_DESCRIPTION_LENGTH} characters"
            )
        errors.extend(validate_weekly_patterns(self.configuration.weekly_patterns).errors)
        return errors


class TemplateStorage(Protocol):
    """Where a mentor's own templates live (memory, database, ...)."""

    def list_templates(self, mentor_id: str) -> List[Template]:
        ...

    def get_template(self, mentor_id: str, template_id: str) -> Optional[Template]:
        ...

    def save_template(self, mentor_id: str, template: Template) -> Template:
        ...

    def delete_template(self, mentor_id: str, template_id: str) -> bool:
        ...

    def record_use(self, mentor_id: str, template_id: str) -> None:
        ...


class InMemoryTemplateStorage:
    """Process-local storage; used by tests and for single-user tooling."""

    def __init__(self) -> None:
        self._templates: Dict[str, Dict[str, Template]] = {}

    def list_templates(self, mentor_id: str) -> List[Template]:
        return sorted(
            self._templates.get(mentor_id, {}).values(),
            key=lambda t: t.id or "",
        )

    def get_template(self, mentor_id: str, template_id: str) -> Optional[Template]:
        return self._templates.get(mentor_id, {}).get(template_id)

    def save_template(self, mentor_id: str, template: Template) -> Template:
        stored = replace(
            template,
            id=template.id or generate_ulid(),
            created_at=template.created_at or now_utc(),
        )
        self._templates.setdefault(mentor_id, {})[stored.id] = stored
        return stored

    def delete_template(self, mentor_id: str, template_id: str) -> bool:
        return self._templates.get(mentor_id, {}).pop(template_id, None) is not None

    def record_use(self, mentor_id: str, template_id: str) -> None:
        template = self.get_template(mentor_id, template_id)
        if template is not None:
            self._templates[mentor_id][template_id] = replace(
                template, usage_count=template.usage_count + 1
            )


def _hours(start: int, end: int, type: BlockType = _AVAILABLE) -> TimeBlock:
    return TimeBlock(start * 60, end * 60, type, 1 if type == _AVAILABLE else None)


def _week(day_blocks: Dict[int, Tuple[TimeBlock, ...]]) -> Tuple[WeeklyPattern, ...]:
    return tuple(
        WeeklyPattern(day, day in day_blocks, day_blocks.get(day, ())) for day in range(7)
    )


_STANDARD_DAY = (_hours(9, 12), _hours(12, 13, BlockType.BREAK), _hours(13, 17))
_WEEKEND_DAY = (_hours(10, 13), _hours(13, 14, BlockType.BREAK), _hours(14, 16))

PREMADE_TEMPLATES: Tuple[Template, ...] = (
    Template(
        id="standard-business-hours",
        name="Standard Business Hours",
        description="Monday to Friday, 9 AM to 5 PM with a lunch break",
        is_premade=True,
        configuration=TemplateConfiguration(
            default_session_duration_minutes=60,
            buffer_minutes_between_sessions=15,
            min_advance_booking_hours=24,
            max_advance_booking_days=90,
            weekly_patterns=_week({day: _STANDARD_DAY for day in (1, 2, 3, 4, 5)}),
        ),
    ),
    Template(
        id="evening-mentor",
        name="Evening Mentor",
        description="Weekday evenings after regular work hours",
        is_premade=True,
        configuration=TemplateConfiguration(
            default_session_duration_minutes=60,
            buffer_minutes_between_sessions=10,
            min_advance_booking_hours=12,
            max_advance_booking_days=60,
            weekly_patterns=_week({day: (_hours(18, 21),) for day in (1, 2, 3, 4, 5)}),
        ),
    ),
    Template(
        id="weekend-warrior",
        name="Weekend Warrior",
        description="Saturday and Sunday sessions only",
        is_premade=True,
        configuration=TemplateConfiguration(
            default_session_duration_minutes=45,
            buffer_minutes_between_sessions=15,
            min_advance_booking_hours=48,
            max_advance_booking_days=30,
            weekly_patterns=_week({0: _WEEKEND_DAY, 6: _WEEKEND_DAY}),
        ),
    ),
    Template(
        id="flexible-schedule",
        name="Flexible Schedule",
        description="Varied hours across the whole week",
        is_premade=True,
        configuration=TemplateConfiguration(
            default_session_duration_minutes=30,
            buffer_minutes_between_sessions=10,
            min_advance_booking_hours=6,
            max_advance_booking_days=45,
            weekly_patterns=_week(
                {
                    0: (_hours(14, 18),),
                    1: (_hours(7, 9), _hours(17, 20)),
                    2: (_hours(10, 14),),
                    3: (_hours(7, 9), _hours(17, 20)),
                    4: (_hours(10, 14),),
                    5: (_hours(15, 19),),
                    6: (_hours(9, 12),),
                }
            ),
        ),
    ),
)


def find_premade(key: str) -> Optional[Template]:
    """Look up a premade template by id or (case-insensitive) name."""
    lowered = key.strip().lower()
    return next(
        (t for t in PREMADE_TEMPLATES if t.id == key or t.name.lower() == lowered),
        None,
    )


def template_from_schedule(
    schedule: Schedule, name: str, description: str = ""
) -> Template:
    """Snapshot the current schedule as a (not yet stored) template."""
    settings: ScheduleSettings = schedule.settings
    template = Template(
        name=name.strip(),
        description=description.strip(),
        configuration=TemplateConfiguration(
            default_session_duration_minutes=settings.default_session_duration_minutes,
            buffer_minutes_between_sessions=settings.buffer_minutes_between_sessions,
            min_advance_booking_hours=settings.min_advance_booking_hours,
            max_advance_booking_days=settings.max_advance_booking_days,
            allow_instant_booking=settings.allow_instant_booking,
            require_confirmation=settings.require_confirmation,
            timezone=settings.timezone,
            weekly_patterns=tuple(schedule.weekly.patterns()),
        ),
    )
    errors = template.validate()
    if errors:
        raise ScheduleValidationException(errors, "Invalid template")
    return template


def apply_template(schedule: Schedule, template: Template) -> Schedule:
    """
    Return a copy of ``schedule`` with the template's settings and week.

    Exceptions are untouched. The original schedule is never modified, so a
    validation failure leaves it exactly as it was.
    """
    updated = schedule.copy()
    updated.update_settings(template.configuration.settings_updates())
    updated.replace_weekly_patterns(template.configuration.weekly_patterns)
    return updated


def list_all_templates(storage: TemplateStorage, mentor_id: str) -> List[Template]:
    return list(PREMADE_TEMPLATES) + storage.list_templates(mentor_id)


def resolve_template(
    storage: TemplateStorage, mentor_id: str, key: str
) -> Template:
    """
    Find a stored template by id, falling back to premade ids and names.

    Raises:
        NotFoundException: If nothing matches
    """
    template = storage.get_template(mentor_id, key) or find_premade(key)
    if template is None:
        raise NotFoundException(f"Template '{key}' not found", code="TEMPLATE_NOT_FOUND")
    return template


def summarize_patterns(patterns: Iterable[WeeklyPattern]) -> List[int]:
    """Days a template actually enables, for list views."""
    return [p.day_of_week for p in patterns if p.is_enabled]
