# backend/tutorhub/services/booking_store.py
"""
Booking Store

The only writer of booking rows. It owns two guarantees:

1. At most one pending/confirmed booking per booking key
   (teacher_id, date, start_time, end_time). ``try_create`` checks and
   inserts while holding the key's slot lock, and the partial unique index
   rejects anything that slips past the lock.
2. Status changes follow the lifecycle below and are applied as a
   compare-and-swap on the stored status, so a simultaneous cancel and
   confirm cannot both win.

    pending   -> confirmed | rejected | cancelled
    confirmed -> completed | cancelled

``completed`` is also derived on read once a confirmed booking's end has
passed. Events are published only after the transaction commits.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.booking_lock import slot_lock
from ..core.config import settings
from ..core.enums import ParticipantRole
from ..core.exceptions import (
    BookingTimeoutException,
    DomainException,
    InvalidTransitionException,
    NotFoundException,
    RepositoryException,
    ServiceException,
    SlotTakenException,
    UnauthorizedActorException,
    ValidationException,
    is_timeout_error,
)
from ..core.metrics import prometheus_metrics
from ..core.ulid_helper import build_slot_id, slot_key
from ..events.booking_events import BookingCreated, BookingStatusChanged
from ..events.publisher import EventPublisher
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
}

# Targets only the teacher may set; anything else needs just participation
TEACHER_ONLY_TARGETS: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.COMPLETED}
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_transition_allowed(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class LessonStats:
    """Dashboard counters for one participant."""

    upcoming_lessons: int
    completed_lessons: int
    unique_connections: int
    total_hours: float


class BookingStore(BaseService):
    """Authoritative record of bookings and their lifecycle."""

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        publisher: Optional[EventPublisher] = None,
        *,
        default_timeout_s: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.publisher = publisher or EventPublisher()
        self.default_timeout_s = self._check_timeout(
            default_timeout_s
            if default_timeout_s is not None
            else settings.booking_persistence_timeout_s
        )
        self.clock = clock or _utc_now

    # Transaction plumbing

    @staticmethod
    def _check_timeout(timeout_s: float) -> float:
        if timeout_s <= 0:
            raise ValidationException(
                "Persistence timeout must be positive", details={"timeout_s": timeout_s}
            )
        return timeout_s

    def _timeout_for(self, timeout_s: Optional[float]) -> float:
        """Caller-supplied bound, or the store default when none is given."""
        if timeout_s is None:
            return self.default_timeout_s
        return self._check_timeout(timeout_s)

    @contextmanager
    def _bounded_transaction(self, operation: str, timeout_s: float) -> Iterator[Session]:
        """
        Commit on success, roll back on failure.

        Driver timeouts become BookingTimeoutException and IntegrityError is
        re-raised as-is for the caller to interpret. Neither is retried here:
        a failed commit may still have been applied.
        """
        try:
            self.repository.apply_statement_timeout(timeout_s)
            yield self.db
            self.db.commit()
        except DomainException:
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            raise
        except RepositoryException as exc:
            self.db.rollback()
            if exc.__cause__ is not None and is_timeout_error(exc.__cause__):
                raise BookingTimeoutException(operation, timeout_s) from exc
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            if is_timeout_error(exc):
                self.logger.warning(
                    f"{operation} hit the persistence timeout",
                    extra={"operation": operation, "timeout_s": timeout_s},
                )
                raise BookingTimeoutException(operation, timeout_s) from exc
            self.logger.error(f"{operation} failed: {str(exc)}")
            raise ServiceException(f"Database operation failed: {str(exc)}") from exc

    def _publish(self, event: Any) -> None:
        self.publisher.publish(event)

    # Creation

    @BaseService.measure_operation("try_create")
    def try_create(
        self,
        teacher_id: str,
        student_id: str,
        slot_id: Optional[str],
        booking_date: date,
        start_time: time,
        end_time: time,
        subject: str,
        module_id: Optional[str] = None,
        notes: str = "",
        *,
        start_utc: datetime,
        end_utc: datetime,
        lesson_timezone: str,
        timeout_s: Optional[float] = None,
    ) -> Booking:
        """
        Atomically reserve a slot as a new pending booking.

        Raises:
            SlotTakenException: an active booking already holds the key
            BookingTimeoutException: the lock or the database did not answer in time
            ValidationException: slot_id does not belong to the booking key
        """
        if start_time >= end_time or start_utc >= end_utc:
            raise ValidationException("Booking end must be after its start")
        if teacher_id == student_id:
            raise ValidationException("Teachers cannot book their own slots")
        expected_slot_id = build_slot_id(teacher_id, booking_date, start_time, end_time)
        if slot_id is not None and slot_id != expected_slot_id:
            raise ValidationException(
                "Slot id does not match the requested date and time",
                details={"slot_id": slot_id, "expected": expected_slot_id},
            )

        bound = self._timeout_for(timeout_s)
        key = slot_key(teacher_id, booking_date, start_time, end_time)
        conflict_details = {"teacher_id": teacher_id, "slot_id": expected_slot_id}

        with slot_lock(key, bound) as held:
            if not held:
                self.logger.warning("Slot lock not acquired", extra={"slot_key": key})
                raise BookingTimeoutException("try_create", bound)
            try:
                with self._bounded_transaction("try_create", bound):
                    existing = self.repository.find_active_for_slot(
                        teacher_id, booking_date, start_time, end_time
                    )
                    if existing is not None:
                        prometheus_metrics.record_booking_conflict("slot_taken")
                        raise SlotTakenException(details=conflict_details)
                    booking = self.repository.insert_booking(
                        teacher_id=teacher_id,
                        student_id=student_id,
                        subject=subject,
                        module_id=module_id,
                        booking_date=booking_date,
                        start_time=start_time,
                        end_time=end_time,
                        lesson_timezone=lesson_timezone,
                        start_utc=start_utc,
                        end_utc=end_utc,
                        status=BookingStatus.PENDING.value,
                        notes=notes or "",
                        created_at=self.clock(),
                    )
            except IntegrityError as exc:
                self.logger.info(
                    "Unique index rejected booking", extra={"slot_key": key, "error": str(exc)}
                )
                prometheus_metrics.record_booking_conflict("slot_taken")
                raise SlotTakenException(details=conflict_details) from exc

        prometheus_metrics.record_booking_created()
        self.log_operation(
            "try_create", booking_id=booking.id, teacher_id=teacher_id, student_id=student_id
        )
        self._publish(
            BookingCreated(
                booking_id=booking.id,
                teacher_id=teacher_id,
                student_id=student_id,
                subject=subject,
                start_utc=start_utc,
                created_at=booking.created_at,
            )
        )
        return booking

    # Status changes

    @BaseService.measure_operation("set_status")
    def set_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        actor_id: str,
        *,
        reason: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> Booking:
        """
        Move a booking along its lifecycle.

        Raises:
            NotFoundException: unknown booking
            UnauthorizedActorException: actor is not a participant, or a
                student tried a teacher-only change
            InvalidTransitionException: not an edge of the lifecycle, or the
                status changed underneath us
        """
        try:
            requested = BookingStatus(new_status)
        except ValueError as exc:
            raise ValidationException(
                f"Unknown booking status '{new_status}'", details={"status": str(new_status)}
            ) from exc

        booking = self.get_booking(booking_id)
        if not booking.is_participant(actor_id):
            raise UnauthorizedActorException(
                "Only the booking's teacher or student can change it",
                details={"booking_id": booking_id, "actor_id": actor_id},
            )

        now = self.clock()
        stored = BookingStatus(booking.status)
        current = booking.effective_status(now)
        if not is_transition_allowed(current, requested):
            raise InvalidTransitionException(current.value, requested.value, booking_id)
        if requested in TEACHER_ONLY_TARGETS and actor_id != booking.teacher_id:
            raise UnauthorizedActorException(
                f"Only the teacher can mark a booking {requested.value}",
                details={"booking_id": booking_id, "actor_id": actor_id},
            )

        bound = self._timeout_for(timeout_s)
        with self._bounded_transaction("set_status", bound):
            swapped = self.repository.compare_and_set_status(
                booking_id,
                stored,
                requested,
                changed_at=now,
                cancelled_by_id=actor_id if requested is BookingStatus.CANCELLED else None,
                cancellation_reason=reason if requested is BookingStatus.CANCELLED else None,
            )
            if not swapped:
                latest = self.repository.reload(booking)
                raise InvalidTransitionException(
                    latest.effective_status(now).value, requested.value, booking_id
                )
        booking = self.repository.reload(booking)

        prometheus_metrics.record_status_transition(current.value, requested.value)
        self.log_operation(
            "set_status",
            booking_id=booking_id,
            from_status=current.value,
            to_status=requested.value,
            actor_id=actor_id,
        )
        self._publish(
            BookingStatusChanged(
                booking_id=booking.id,
                new_status=requested.value,
                teacher_id=booking.teacher_id,
                student_id=booking.student_id,
                changed_at=now,
                previous_status=current.value,
                actor_id=actor_id,
                subject=booking.subject,
            )
        )
        return booking

    # Reads

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(
                f"Booking {booking_id} not found",
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        return booking

    def get_booking_for_user(self, booking_id: str, user_id: str) -> Booking:
        """Booking visible to ``user_id``; non-participants get 403."""
        booking = self.get_booking(booking_id)
        if not booking.is_participant(user_id):
            raise UnauthorizedActorException(
                "You are not a participant in this booking",
                details={"booking_id": booking_id},
            )
        return booking

    def effective_status(self, booking: Booking) -> BookingStatus:
        return booking.effective_status(self.clock())

    @BaseService.measure_operation("list_for_teacher")
    def list_for_teacher(
        self, teacher_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """Teacher's bookings, most recent first, filtered by effective status."""
        return self.repository.list_for_user(
            teacher_id, ParticipantRole.TEACHER, status, now=self.clock()
        )

    @BaseService.measure_operation("list_for_student")
    def list_for_student(
        self, student_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """Student's bookings, most recent first, filtered by effective status."""
        return self.repository.list_for_user(
            student_id, ParticipantRole.STUDENT, status, now=self.clock()
        )

    def list_for_user(
        self, user_id: str, role: ParticipantRole, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        if ParticipantRole(role) is ParticipantRole.TEACHER:
            return self.list_for_teacher(user_id, status)
        return self.list_for_student(user_id, status)

    def upcoming_for_user(
        self, user_id: str, role: ParticipantRole, limit: Optional[int] = None
    ) -> List[Booking]:
        return self.repository.upcoming_for_user(user_id, role, now=self.clock(), limit=limit)

    def past_for_user(
        self, user_id: str, role: ParticipantRole, limit: Optional[int] = None
    ) -> List[Booking]:
        return self.repository.past_for_user(user_id, role, now=self.clock(), limit=limit)

    @BaseService.measure_operation("lesson_stats")
    def lesson_stats(self, user_id: str, role: ParticipantRole) -> LessonStats:
        now = self.clock()
        bookings = self.repository.list_for_user(user_id, role, now=now)
        teacher_side = ParticipantRole(role) is ParticipantRole.TEACHER

        upcoming = 0
        completed_minutes = 0
        completed = 0
        connections = set()
        for booking in bookings:
            status = booking.effective_status(now)
            connections.add(booking.student_id if teacher_side else booking.teacher_id)
            if status in ACTIVE_STATUSES and booking.start_utc >= now:
                upcoming += 1
            elif status is BookingStatus.COMPLETED:
                completed += 1
                completed_minutes += booking.duration_minutes

        return LessonStats(
            upcoming_lessons=upcoming,
            completed_lessons=completed,
            unique_connections=len(connections),
            total_hours=round(completed_minutes / 60, 1),
        )
