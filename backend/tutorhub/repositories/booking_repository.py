# backend/tutorhub/repositories/booking_repository.py
"""
Booking Repository

Data access for bookings. The repository knows two things the rest of the
code relies on:

- the booking key (teacher_id, booking_date, start_time, end_time) and the
  partial unique index that guards it
- the derive-on-read rule for ``completed``: a confirmed booking whose end
  has passed is filtered and counted as completed without any write

Nothing here commits; BookingStore owns transaction scope.
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from ..core.enums import ParticipantRole
from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking rows."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    # Slot key lookups

    def find_active_for_slot(
        self,
        teacher_id: str,
        booking_date: date,
        start_time: time,
        end_time: time,
    ) -> Optional[Booking]:
        """Return the pending/confirmed booking holding this exact slot, if any."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.teacher_id == teacher_id,
                    Booking.booking_date == booking_date,
                    Booking.start_time == start_time,
                    Booking.end_time == end_time,
                    Booking.status.in_(_ACTIVE_VALUES),
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking slot for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to check slot: {str(e)}") from e

    def insert_booking(self, **fields: Any) -> Booking:
        """
        Insert a booking inside a savepoint.

        IntegrityError from the partial unique index is re-raised untouched so
        the caller can translate it into a slot conflict; the outer
        transaction stays usable.
        """
        savepoint = self.db.begin_nested()
        booking = Booking(**fields)
        try:
            self.db.add(booking)
            self.db.flush()
        except SQLAlchemyError:
            savepoint.rollback()
            raise
        savepoint.commit()
        return booking

    def apply_statement_timeout(self, timeout_s: float) -> None:
        """
        Bound statements in the current transaction.

        SQLite already bounds lock waits through the connection's busy
        timeout, so only PostgreSQL needs the per-transaction setting.
        """
        if not self.is_postgres:
            return
        millis = max(1, int(timeout_s * 1000))
        self.db.execute(text(f"SET LOCAL statement_timeout = {millis}"))

    # Status changes

    def compare_and_set_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        new_status: BookingStatus,
        *,
        changed_at: datetime,
        cancelled_by_id: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
    ) -> bool:
        """
        Move ``booking_id`` from ``expected`` to ``new_status`` in one UPDATE.

        Returns False when the stored status was no longer ``expected``
        (another actor won the race).
        """
        values: Dict[str, Any] = {
            "status": new_status.value,
            "status_changed_at": changed_at,
            "updated_at": changed_at,
        }
        if new_status is BookingStatus.CANCELLED:
            values["cancelled_by_id"] = cancelled_by_id
            values["cancellation_reason"] = cancellation_reason

        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return bool(result.rowcount == 1)

    def reload(self, booking: Booking) -> Booking:
        self.db.refresh(booking)
        return booking

    # Listing

    def list_for_user(
        self,
        user_id: str,
        role: ParticipantRole,
        status: Optional[BookingStatus] = None,
        *,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """Bookings for one participant, most recent first."""
        query = self._build_query().filter(self._owner_clause(user_id, role))
        if status is not None:
            query = query.filter(self._status_clause(status, _now(now)))
        query = query.order_by(Booking.start_utc.desc(), Booking.created_at.desc())
        if limit:
            query = query.limit(limit)
        return self._execute_query(query)

    def upcoming_for_user(
        self,
        user_id: str,
        role: ParticipantRole,
        *,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """Pending and confirmed bookings that have not started yet, soonest first."""
        current = _now(now)
        query = (
            self._build_query()
            .filter(
                self._owner_clause(user_id, role),
                Booking.status.in_(_ACTIVE_VALUES),
                Booking.start_utc >= current,
            )
            .order_by(Booking.start_utc.asc(), Booking.created_at.asc())
        )
        if limit:
            query = query.limit(limit)
        return self._execute_query(query)

    def past_for_user(
        self,
        user_id: str,
        role: ParticipantRole,
        *,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """Completed bookings plus anything whose start has passed, most recent first."""
        current = _now(now)
        query = (
            self._build_query()
            .filter(
                self._owner_clause(user_id, role),
                or_(
                    self._status_clause(BookingStatus.COMPLETED, current),
                    Booking.start_utc < current,
                ),
            )
            .order_by(Booking.start_utc.desc(), Booking.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return self._execute_query(query)

    def count_by_effective_status(
        self, user_id: str, role: ParticipantRole, *, now: Optional[datetime] = None
    ) -> Dict[str, int]:
        """Count a participant's bookings per effective status."""
        current = _now(now)
        counts = {status.value: 0 for status in BookingStatus}
        for booking in self._execute_query(
            self._build_query().filter(self._owner_clause(user_id, role))
        ):
            counts[booking.effective_status(current).value] += 1
        return counts

    # Query helpers

    @staticmethod
    def _owner_clause(user_id: str, role: ParticipantRole) -> ColumnElement[bool]:
        if ParticipantRole(role) is ParticipantRole.TEACHER:
            return Booking.teacher_id == user_id
        return Booking.student_id == user_id

    @staticmethod
    def _status_clause(status: BookingStatus, now: datetime) -> ColumnElement[bool]:
        status = BookingStatus(status)
        if status is BookingStatus.COMPLETED:
            return or_(
                Booking.status == BookingStatus.COMPLETED.value,
                and_(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.end_utc <= now,
                ),
            )
        if status is BookingStatus.CONFIRMED:
            return and_(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.end_utc > now,
            )
        return Booking.status == status.value
