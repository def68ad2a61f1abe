"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BookingCreated:
    """Fired after a pending booking is committed."""

    booking_id: str
    teacher_id: str
    student_id: str
    subject: str
    start_utc: datetime
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BookingStatusChanged:
    """Fired after a status transition is committed."""

    booking_id: str
    new_status: str
    teacher_id: str
    student_id: str
    changed_at: datetime
    previous_status: Optional[str] = None
    actor_id: Optional[str] = None
    subject: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
