# backend/tutorhub/schemas/booking.py
"""
Booking schemas.

``status`` in responses is always the effective status: a confirmed booking
whose end has passed is reported as completed.
"""

import datetime
from typing import List, Literal, Optional

from pydantic import Field

from ..models.booking import Booking
from ._strict_base import StrictModel, StrictRequestModel, TimeWindowRequest

DateType = datetime.date
TimeType = datetime.time
DateTimeType = datetime.datetime


class BookingCreate(TimeWindowRequest):
    """Student's slot selection."""

    teacher_id: str = Field(..., min_length=1, max_length=64)
    booking_date: DateType
    subject: str = Field(..., min_length=1, max_length=120)
    module_id: Optional[str] = Field(default=None, max_length=64)
    notes: str = Field(default="", max_length=2000)
    teacher_zone: Optional[str] = Field(
        default=None, description="IANA zone; defaults to the teacher's stored zone"
    )
    timeout_s: Optional[float] = Field(default=None, gt=0, le=30)


class BookingStatusUpdate(StrictRequestModel):
    status: Literal["confirmed", "rejected", "cancelled", "completed"]
    reason: Optional[str] = Field(default=None, max_length=500)


class BookingResponse(StrictModel):
    id: str
    teacher_id: str
    student_id: str
    subject: str
    module_id: Optional[str] = None
    booking_date: DateType
    start_time: TimeType
    end_time: TimeType
    lesson_timezone: str
    start_utc: DateTimeType
    end_utc: DateTimeType
    duration_minutes: int
    status: str
    notes: str
    created_at: DateTimeType
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_booking(
        cls, booking: Booking, now: Optional[DateTimeType] = None
    ) -> "BookingResponse":
        return cls(
            id=booking.id,
            teacher_id=booking.teacher_id,
            student_id=booking.student_id,
            subject=booking.subject,
            module_id=booking.module_id,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            lesson_timezone=booking.lesson_timezone,
            start_utc=booking.start_utc,
            end_utc=booking.end_utc,
            duration_minutes=booking.duration_minutes,
            status=booking.effective_status(now).value,
            notes=booking.notes or "",
            created_at=booking.created_at,
            cancelled_by_id=booking.cancelled_by_id,
            cancellation_reason=booking.cancellation_reason,
        )


class BookingListResponse(StrictModel):
    items: List[BookingResponse]
    total: int


class LessonStatsResponse(StrictModel):
    upcoming_lessons: int
    completed_lessons: int
    unique_connections: int
    total_hours: float
