"""
Database models for the tutorhub scheduling backend.

- Availability profiles and their rule rows
- Bookings
"""

from .availability import (
    RecurringAvailability,
    SpecificDateAvailability,
    TeacherAvailability,
    TeacherBreak,
)
from .booking import ACTIVE_STATUSES, Booking, BookingStatus

__all__ = [
    "ACTIVE_STATUSES",
    "Booking",
    "BookingStatus",
    "RecurringAvailability",
    "SpecificDateAvailability",
    "TeacherAvailability",
    "TeacherBreak",
]
