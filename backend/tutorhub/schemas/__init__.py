"""Pydantic request/response schemas."""

from .availability import (
    AvailabilityRulesResponse,
    AvailabilityRulesUpdate,
    BookableSlotsResponse,
    BreakPeriodIn,
    RecurringSlotIn,
    SlotOut,
    SpecificDateSlotIn,
)
from .booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    LessonStatsResponse,
)

__all__ = [
    "AvailabilityRulesResponse",
    "AvailabilityRulesUpdate",
    "BookableSlotsResponse",
    "BookingCreate",
    "BookingListResponse",
    "BookingResponse",
    "BookingStatusUpdate",
    "BreakPeriodIn",
    "LessonStatsResponse",
    "RecurringSlotIn",
    "SlotOut",
    "SpecificDateSlotIn",
]
