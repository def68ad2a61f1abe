# backend/tutorhub/api/dependencies.py
"""
Dependency factories for the HTTP layer.

Collaborators are created per request from the request-scoped session and
handed to one another explicitly; nothing below reaches for a global
session.
"""

from functools import lru_cache
import logging
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db as original_get_db
from ..events.publisher import EventPublisher
from ..services.availability_service import AvailabilityService
from ..services.booking_scheduler import BookingScheduler
from ..services.booking_store import BookingStore
from ..services.notification_service import NotificationService
from ..services.timezone_service import TimezoneService

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped database session."""
    yield from original_get_db()


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> str:
    """
    Identity supplied by the auth collaborator in front of this service.

    The header is trusted as-is; this service never authenticates users.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Missing X-User-Id header", "code": "MISSING_IDENTITY"},
        )
    return user_id


@lru_cache(maxsize=1)
def get_event_publisher() -> EventPublisher:
    """Process-wide publisher with the default notification listener attached."""
    publisher = EventPublisher()
    publisher.register(NotificationService())
    return publisher


def get_timezone_service() -> TimezoneService:
    return TimezoneService()


def get_availability_service(
    db: Session = Depends(get_db),
    timezone_service: TimezoneService = Depends(get_timezone_service),
) -> AvailabilityService:
    return AvailabilityService(db, timezone_service=timezone_service)


def get_booking_store(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingStore:
    return BookingStore(db, publisher=publisher)


def get_booking_scheduler(
    availability_service: AvailabilityService = Depends(get_availability_service),
    booking_store: BookingStore = Depends(get_booking_store),
    timezone_service: TimezoneService = Depends(get_timezone_service),
) -> BookingScheduler:
    return BookingScheduler(availability_service, booking_store, timezone_service)
