# backend/tutorhub/models/booking.py
"""
Booking model.

A booking links a student to one concrete teacher slot and carries its own
approval / cancellation lifecycle. Rows are never deleted; cancelled and
rejected bookings stay for history.

The partial unique index ``uq_bookings_active_slot`` is the storage-level
guarantee that at most one pending/confirmed booking exists per
(teacher_id, booking_date, start_time, end_time).
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import FrozenSet, Optional, cast

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    Index,
    String,
    Text,
    Time,
)
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting teacher approval
    CONFIRMED = "confirmed"
    COMPLETED = "completed"  # Derived once end_utc has passed
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


class Booking(Base):
    """Booking record between a student and a teacher for one slot."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    teacher_id = Column(String(64), nullable=False, index=True)
    student_id = Column(String(64), nullable=False, index=True)

    subject = Column(String(120), nullable=False)
    module_id = Column(String(64), nullable=True)

    # Slot in the teacher's local time
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    lesson_timezone = Column(String(64), nullable=False)

    # Same window as UTC instants
    start_utc = Column(UTCDateTime, nullable=False)
    end_utc = Column(UTCDateTime, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=False, default="")

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)
    status_changed_at = Column(UTCDateTime, nullable=True)

    cancelled_by_id = Column(String(64), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'rejected', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        CheckConstraint("start_utc < end_utc", name="ck_bookings_utc_order"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, "
            f"teacher={self.teacher_id}, date={self.booking_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    def effective_status(self, now: Optional[datetime] = None) -> BookingStatus:
        """
        Status as seen by readers.

        A confirmed booking whose end has passed reads as completed; nothing
        is written for that transition.
        """
        stored = BookingStatus(self.status)
        if stored is BookingStatus.CONFIRMED:
            current = now or datetime.now(timezone.utc)
            if cast(datetime, self.end_utc) <= current:
                return BookingStatus.COMPLETED
        return stored

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.teacher_id, self.student_id)

    @property
    def duration_minutes(self) -> int:
        delta = cast(datetime, self.end_utc) - cast(datetime, self.start_utc)
        return int(delta.total_seconds() // 60)


Index(
    "uq_bookings_active_slot",
    Booking.teacher_id,
    Booking.booking_date,
    Booking.start_time,
    Booking.end_time,
    unique=True,
    postgresql_where=Booking.status.in_(["pending", "confirmed"]),
    sqlite_where=Booking.status.in_(["pending", "confirmed"]),
)

Index("ix_bookings_teacher_start", Booking.teacher_id, Booking.start_utc)
Index("ix_bookings_student_start", Booking.student_id, Booking.start_utc)
