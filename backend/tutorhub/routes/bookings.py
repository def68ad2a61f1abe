# backend/tutorhub/routes/bookings.py
"""
Booking routes - API v1

All business logic delegated to BookingScheduler / BookingStore.

Endpoints:
    GET /stats - Lesson counters for the caller
    GET /upcoming - Pending and confirmed lessons that have not started
    GET /past - Completed lessons and anything already started
    GET / - List bookings, most recent first
    POST / - Book a slot
    GET /{booking_id} - Booking details
    PATCH /{booking_id}/status - Confirm, reject, cancel or complete
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..api.dependencies import get_booking_scheduler, get_booking_store, get_current_user_id
from ..core.enums import ParticipantRole
from ..models.booking import BookingStatus
from ..schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    LessonStatsResponse,
)
from ..services.booking_scheduler import BookingScheduler
from ..services.booking_store import BookingStore

logger = logging.getLogger(__name__)

# V1 router - prefix is added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def _list_response(store: BookingStore, bookings: list) -> BookingListResponse:
    now = store.clock()
    items = [BookingResponse.from_booking(booking, now) for booking in bookings]
    return BookingListResponse(items=items, total=len(items))


# ============================================================================
# Static routes (no path parameters)
# ============================================================================


@router.get("/stats", response_model=LessonStatsResponse)
async def get_lesson_stats(
    role: ParticipantRole = Query(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> LessonStatsResponse:
    stats = await asyncio.to_thread(booking_store.lesson_stats, current_user_id, role)
    return LessonStatsResponse.model_validate(stats)


@router.get("/upcoming", response_model=BookingListResponse)
async def get_upcoming_bookings(
    role: ParticipantRole = Query(...),
    limit: int = Query(5, ge=1, le=50),
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(
        booking_store.upcoming_for_user, current_user_id, role, limit
    )
    return _list_response(booking_store, bookings)


@router.get("/past", response_model=BookingListResponse)
async def get_past_bookings(
    role: ParticipantRole = Query(...),
    limit: int = Query(20, ge=1, le=100),
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(booking_store.past_for_user, current_user_id, role, limit)
    return _list_response(booking_store, bookings)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    role: ParticipantRole = Query(...),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> BookingListResponse:
    """Caller's bookings as teacher or student, most recent first."""
    bookings = await asyncio.to_thread(
        booking_store.list_for_user, current_user_id, role, status_filter
    )
    return _list_response(booking_store, bookings)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingResponse:
    """Book a slot for the calling student; the booking starts out pending."""
    booking = await asyncio.to_thread(
        scheduler.book_slot,
        payload.teacher_id,
        current_user_id,
        payload.booking_date,
        payload.start_time,
        payload.end_time,
        payload.teacher_zone,
        payload.subject,
        payload.module_id,
        payload.notes,
        timeout_s=payload.timeout_s,
    )
    return BookingResponse.from_booking(booking, scheduler.booking_store.clock())


# ============================================================================
# Dynamic routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> BookingResponse:
    booking = await asyncio.to_thread(
        booking_store.get_booking_for_user, booking_id, current_user_id
    )
    return BookingResponse.from_booking(booking, booking_store.clock())


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_store: BookingStore = Depends(get_booking_store),
) -> BookingResponse:
    booking = await asyncio.to_thread(
        booking_store.set_status,
        booking_id,
        BookingStatus(payload.status),
        current_user_id,
        reason=payload.reason,
    )
    return BookingResponse.from_booking(booking, booking_store.clock())
