# backend/mentorhub/routes/availability.py
"""
Mentor availability routes for MentorHub.

Router Endpoints (prefix /api/v1/mentors/{mentor_id}/availability):
    GET / - Get the saved schedule ({schedule: null} if none)
    POST / - Create the full schedule
    PUT / - Replace the full schedule
    PATCH /settings - Partially update settings
    PUT /days/{day}/enabled - Enable or disable a day
    POST /days/{day}/blocks - Add a time block
    PUT /days/{day}/blocks/{index} - Replace a time block
    DELETE /days/{day}/blocks/{index} - Remove a time block
    POST /days/{day}/copy - Copy a day onto other days
    POST /quick-setup - Write one block list to a group of days
    GET /effective - Exception-resolved availability for a date
    GET /slots - Bookable slots over a date range
    POST /bookings - Request a session
    GET /exceptions - List date exceptions
    POST /exceptions - Create a date exception
    POST /exceptions/quick-add - Vacation, holiday or conference preset
    DELETE /exceptions - Bulk delete exceptions (idempotent)
    GET /templates - Premade and saved templates
    POST /templates - Save the current schedule as a template
    DELETE /templates/{template_id} - Delete a saved template
    POST /templates/apply - Apply a template
"""

from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ..api.dependencies.services import (
    get_availability_service,
    get_booking_service,
    get_template_service,
)
from ..core.exceptions import DomainException
from ..schemas.availability import (
    AvailabilityScheduleRequest,
    AvailabilityScheduleResponse,
    BlockRemovedResponse,
    BookingRequest,
    BookingResponse,
    CopyDayRequest,
    DayEnabledRequest,
    EffectiveAvailabilityResponse,
    ExceptionCreate,
    ExceptionDeleteRequest,
    ExceptionDeleteResponse,
    ExceptionListResponse,
    ExceptionResponse,
    QuickAddExceptionRequest,
    QuickSetupRequest,
    ScheduleSettingsUpdate,
    SlotListResponse,
    SlotResponse,
    TemplateApplyRequest,
    TemplateCreate,
    TemplateListResponse,
    TemplateResponse,
    TimeBlockSchema,
)
from ..services.availability_service import AvailabilityService
from ..services.booking_service import BookingService
from ..services.template_service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter()


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error {action}: {str(e)}")
    return HTTPException(status_code=500, detail="Internal server error")


# Schedule


@router.get("", response_model=AvailabilityScheduleResponse)
async def get_availability(
    mentor_id: str,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    """Saved schedule; ``schedule`` is null until the mentor saves one."""
    try:
        return AvailabilityScheduleResponse.from_domain(availability_service.get_schedule(mentor_id))
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("getting availability", e)


@router.post(
    "",
    response_model=AvailabilityScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_availability(
    mentor_id: str,
    payload: AvailabilityScheduleRequest,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.create_schedule(
            mentor_id,
            payload.schedule.to_domain(),
            [p.to_domain() for p in payload.weekly_patterns],
        )
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("creating availability", e)


@router.put("", response_model=AvailabilityScheduleResponse)
async def replace_availability(
    mentor_id: str,
    payload: AvailabilityScheduleRequest,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    """
    Replace settings and the whole week.

    Send ``version`` to fail with 409 if someone else saved in between.
    """
    try:
        schedule = availability_service.replace_schedule(
            mentor_id,
            payload.schedule.to_domain(),
            [p.to_domain() for p in payload.weekly_patterns],
            expected_version=payload.version,
        )
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("replacing availability", e)


@router.patch("/settings", response_model=AvailabilityScheduleResponse)
async def update_settings(
    mentor_id: str,
    payload: ScheduleSettingsUpdate,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.update_settings(mentor_id, payload.to_updates())
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("updating settings", e)


# Weekly pattern edits


@router.put("/days/{day}/enabled", response_model=AvailabilityScheduleResponse)
async def set_day_enabled(
    mentor_id: str,
    payload: DayEnabledRequest,
    day: int = Path(..., ge=0, le=6, description="Day of week, 0 = Sunday"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.set_day_enabled(mentor_id, day, payload.is_enabled)
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("toggling day", e)


@router.post(
    "/days/{day}/blocks",
    response_model=AvailabilityScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_block(
    mentor_id: str,
    payload: TimeBlockSchema,
    day: int = Path(..., ge=0, le=6, description="Day of week, 0 = Sunday"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    """Add a block; 400 lists every validation error and nothing is saved."""
    try:
        schedule = availability_service.add_block(mentor_id, day, payload.to_domain())
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("adding block", e)


@router.put("/days/{day}/blocks/{index}", response_model=AvailabilityScheduleResponse)
async def edit_block(
    mentor_id: str,
    payload: TimeBlockSchema,
    day: int = Path(..., ge=0, le=6, description="Day of week, 0 = Sunday"),
    index: int = Path(..., ge=0),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.edit_block(mentor_id, day, index, payload.to_domain())
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("editing block", e)


@router.delete("/days/{day}/blocks/{index}", response_model=BlockRemovedResponse)
async def remove_block(
    mentor_id: str,
    day: int = Path(..., ge=0, le=6, description="Day of week, 0 = Sunday"),
    index: int = Path(..., ge=0),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BlockRemovedResponse:
    """Out-of-range indices are a no-op with ``removed: false``."""
    try:
        schedule, removed = availability_service.remove_block(mentor_id, day, index)
        base = AvailabilityScheduleResponse.from_domain(schedule)
        return BlockRemovedResponse(
            schedule=base.schedule, weekly_patterns=base.weekly_patterns, removed=removed
        )
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("removing block", e)


@router.post("/days/{day}/copy", response_model=AvailabilityScheduleResponse)
async def copy_day(
    mentor_id: str,
    payload: CopyDayRequest,
    day: int = Path(..., ge=0, le=6, description="Day of week, 0 = Sunday"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.copy_day(mentor_id, day, payload.target_days)
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("copying day", e)


@router.post("/quick-setup", response_model=AvailabilityScheduleResponse)
async def quick_setup(
    mentor_id: str,
    payload: QuickSetupRequest,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = availability_service.quick_setup(
            mentor_id,
            preset=payload.preset,
            days_of_week=payload.days_of_week,
            blocks=payload.blocks(),
        )
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("applying quick setup", e)


# Effective availability, slots and bookings


@router.get("/effective", response_model=EffectiveAvailabilityResponse)
async def get_effective_availability(
    mentor_id: str,
    on_date: date = Query(..., alias="date", description="Local date, YYYY-MM-DD"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> EffectiveAvailabilityResponse:
    try:
        day = availability_service.get_effective_availability(mentor_id, on_date)
        return EffectiveAvailabilityResponse.from_domain(day)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("getting effective availability", e)


@router.get("/slots", response_model=SlotListResponse)
async def get_bookable_slots(
    mentor_id: str,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    duration: Optional[int] = Query(None, alias="durationMinutes", ge=1),
    output_timezone: Optional[str] = Query(None, alias="timezone"),
    booking_service: BookingService = Depends(get_booking_service),
) -> SlotListResponse:
    """Candidate slots in the mentor's booking window, optionally shown in another timezone."""
    try:
        slots = booking_service.get_bookable_slots(
            mentor_id,
            start_date,
            end_date,
            duration_minutes=duration,
            output_timezone=output_timezone,
        )
        return SlotListResponse(
            mentor_id=mentor_id, slots=[SlotResponse.from_domain(s) for s in slots]
        )
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("listing slots", e)


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_booking(
    mentor_id: str,
    payload: BookingRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        session = booking_service.request_booking(
            mentor_id, payload.mentee_id, payload.start, payload.end, payload.notes
        )
        return BookingResponse.model_validate(session)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("requesting booking", e)


# Exceptions


@router.get("/exceptions", response_model=ExceptionListResponse)
async def list_exceptions(
    mentor_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ExceptionListResponse:
    try:
        exceptions = availability_service.list_exceptions(mentor_id, start_date, end_date)
        return ExceptionListResponse(
            exceptions=[ExceptionResponse.from_domain(e) for e in exceptions]
        )
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("listing exceptions", e)


@router.post(
    "/exceptions",
    response_model=ExceptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_exception(
    mentor_id: str,
    payload: ExceptionCreate,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ExceptionResponse:
    try:
        exception = availability_service.create_exception(
            mentor_id,
            payload.start_date,
            payload.end_date,
            type=payload.type,
            is_full_day=payload.is_full_day,
            reason=payload.reason,
            time_blocks=payload.blocks(),
        )
        return ExceptionResponse.from_domain(exception)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("creating exception", e)


@router.post(
    "/exceptions/quick-add",
    response_model=ExceptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def quick_add_exception(
    mentor_id: str,
    payload: QuickAddExceptionRequest,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ExceptionResponse:
    try:
        exception = availability_service.quick_add_exception(mentor_id, payload.preset)
        return ExceptionResponse.from_domain(exception)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("adding preset exception", e)


@router.delete("/exceptions", response_model=ExceptionDeleteResponse)
async def delete_exceptions(
    mentor_id: str,
    payload: ExceptionDeleteRequest,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ExceptionDeleteResponse:
    """Unknown ids are ignored, so repeating a delete is harmless."""
    try:
        deleted = availability_service.delete_exceptions(mentor_id, payload.exception_ids)
        return ExceptionDeleteResponse(deleted_ids=deleted)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("deleting exceptions", e)


# Templates


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(
    mentor_id: str,
    template_service: TemplateService = Depends(get_template_service),
) -> TemplateListResponse:
    try:
        templates = template_service.list_templates(mentor_id)
        return TemplateListResponse(templates=[TemplateResponse.from_domain(t) for t in templates])
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("listing templates", e)


@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_template(
    mentor_id: str,
    payload: TemplateCreate,
    template_service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    try:
        template = template_service.save_current_as_template(
            mentor_id, payload.name, payload.description
        )
        return TemplateResponse.from_domain(template)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("saving template", e)


@router.post("/templates/apply", response_model=AvailabilityScheduleResponse)
async def apply_template(
    mentor_id: str,
    payload: TemplateApplyRequest,
    template_service: TemplateService = Depends(get_template_service),
) -> AvailabilityScheduleResponse:
    try:
        schedule = template_service.apply_template(mentor_id, payload.template_id)
        return AvailabilityScheduleResponse.from_domain(schedule)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("applying template", e)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    mentor_id: str,
    template_id: str,
    template_service: TemplateService = Depends(get_template_service),
) -> None:
    try:
        template_service.delete_template(mentor_id, template_id)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise _internal_error("deleting template", e)
