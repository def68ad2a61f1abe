"""Service layer."""

from .availability_service import AvailabilityService
from .base import BaseService
from .booking_scheduler import BookingScheduler
from .booking_store import BookingStore, LessonStats
from .notification_service import Notification, NotificationService
from .timezone_service import TimezoneService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingScheduler",
    "BookingStore",
    "LessonStats",
    "Notification",
    "NotificationService",
    "TimezoneService",
]
