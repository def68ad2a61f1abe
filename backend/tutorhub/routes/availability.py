# backend/tutorhub/routes/availability.py
"""
Teacher availability routes - API v1

Endpoints:
    GET /{teacher_id}/availability - Bookable slots over the rolling horizon
    GET /{teacher_id}/availability/rules - Raw rules for the schedule editor
    PUT /{teacher_id}/availability/rules - Save the whole editor state
    PUT /{teacher_id}/availability/timezone - Change the teacher's zone
    POST /{teacher_id}/availability/recurring - Add a weekly slot
    POST /{teacher_id}/availability/specific - Add a one-off slot
    POST /{teacher_id}/availability/breaks - Add a break or leave
    DELETE /{teacher_id}/availability/{kind}/{rule_id} - Remove one rule
"""

import asyncio
from datetime import date
from enum import Enum
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ..api.dependencies import get_availability_service, get_current_user_id
from ..core.config import settings
from ..domain.time_rules import BreakKind
from ..schemas.availability import (
    AvailabilityRulesResponse,
    AvailabilityRulesUpdate,
    BookableSlotsResponse,
    BreakPeriodIn,
    BreakPeriodOut,
    RecurringSlotIn,
    RecurringSlotOut,
    SpecificDateSlotIn,
    SpecificDateSlotOut,
)
from ..services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


class RuleKind(str, Enum):
    RECURRING = "recurring"
    SPECIFIC = "specific"
    BREAKS = "breaks"


@router.get("/{teacher_id}/availability", response_model=BookableSlotsResponse)
async def get_bookable_slots(
    teacher_id: str,
    from_date: Optional[date] = Query(None, description="First day; clamped to today"),
    days: Optional[int] = Query(None, ge=1, le=settings.max_horizon_days),
    include_empty: bool = Query(False),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BookableSlotsResponse:
    """Bookable slots for a teacher, keyed by date in the teacher's zone."""
    profile = await asyncio.to_thread(availability_service.get_profile, teacher_id)
    resolved = await asyncio.to_thread(
        availability_service.get_bookable_slots,
        teacher_id,
        from_date,
        days,
        include_empty=include_empty,
    )
    return BookableSlotsResponse.build(teacher_id, profile.timezone, resolved)


@router.get("/{teacher_id}/availability/rules", response_model=AvailabilityRulesResponse)
async def get_rules(
    teacher_id: str,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRulesResponse:
    profile = await asyncio.to_thread(availability_service.get_profile, teacher_id)
    return AvailabilityRulesResponse.from_profile(profile)


@router.put("/{teacher_id}/availability/rules", response_model=AvailabilityRulesResponse)
async def replace_rules(
    teacher_id: str,
    payload: AvailabilityRulesUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRulesResponse:
    profile = await asyncio.to_thread(
        availability_service.replace_rules,
        teacher_id,
        current_user_id,
        [slot.to_domain() for slot in payload.recurring_slots],
        [slot.to_domain() for slot in payload.specific_date_slots],
        [period.to_domain() for period in payload.break_periods],
        zone_id=payload.timezone,
    )
    return AvailabilityRulesResponse.from_profile(profile)


@router.put("/{teacher_id}/availability/timezone", response_model=AvailabilityRulesResponse)
async def set_timezone(
    teacher_id: str,
    zone_id: str = Body(..., embed=True, alias="timezone"),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRulesResponse:
    await asyncio.to_thread(
        availability_service.set_timezone, teacher_id, current_user_id, zone_id
    )
    profile = await asyncio.to_thread(availability_service.get_profile, teacher_id)
    return AvailabilityRulesResponse.from_profile(profile)


@router.post(
    "/{teacher_id}/availability/recurring",
    response_model=RecurringSlotOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_recurring_slot(
    teacher_id: str,
    payload: RecurringSlotIn = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> RecurringSlotOut:
    slot = await asyncio.to_thread(
        availability_service.add_recurring_slot,
        teacher_id,
        current_user_id,
        payload.day_of_week,
        payload.start_time,
        payload.end_time,
    )
    return RecurringSlotOut(
        id=slot.rule_id,
        day_of_week=slot.day_of_week,
        start_time=slot.start_time,
        end_time=slot.end_time,
    )


@router.post(
    "/{teacher_id}/availability/specific",
    response_model=SpecificDateSlotOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_specific_date_slot(
    teacher_id: str,
    payload: SpecificDateSlotIn = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SpecificDateSlotOut:
    slot = await asyncio.to_thread(
        availability_service.add_specific_date_slot,
        teacher_id,
        current_user_id,
        payload.date,
        payload.start_time,
        payload.end_time,
    )
    return SpecificDateSlotOut(
        id=slot.rule_id, date=slot.date, start_time=slot.start_time, end_time=slot.end_time
    )


@router.post(
    "/{teacher_id}/availability/breaks",
    response_model=BreakPeriodOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_break_period(
    teacher_id: str,
    payload: BreakPeriodIn = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BreakPeriodOut:
    period = await asyncio.to_thread(
        availability_service.add_break_period,
        teacher_id,
        current_user_id,
        payload.start_date,
        payload.end_date,
        payload.reason,
        BreakKind(payload.kind),
    )
    return BreakPeriodOut(
        id=period.rule_id,
        start_date=period.start_date,
        end_date=period.end_date,
        reason=period.reason,
        kind=period.kind.value,
    )


@router.delete(
    "/{teacher_id}/availability/{kind}/{rule_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_rule(
    teacher_id: str,
    kind: RuleKind,
    rule_id: str,
    current_user_id: str = Depends(get_current_user_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    remover = {
        RuleKind.RECURRING: availability_service.remove_recurring_slot,
        RuleKind.SPECIFIC: availability_service.remove_specific_date_slot,
        RuleKind.BREAKS: availability_service.remove_break_period,
    }[kind]
    await asyncio.to_thread(remover, teacher_id, current_user_id, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
