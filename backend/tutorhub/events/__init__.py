"""Domain events."""

from .booking_events import BookingCreated, BookingStatusChanged
from .publisher import Event, EventListener, EventPublisher

__all__ = [
    "BookingCreated",
    "BookingStatusChanged",
    "Event",
    "EventListener",
    "EventPublisher",
]
