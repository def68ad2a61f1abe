# backend/tutorhub/services/notification_service.py
"""
Notification Service

Default listener for booking events. It renders short in-app messages and
hands them to the delivery collaborator through an injected ``sender``.
Delivery is best effort: the publisher logs and skips a failing listener,
so nothing here can undo a committed booking.
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, List, Optional

from ..events.booking_events import BookingCreated, BookingStatusChanged
from ..models.booking import BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """One message for one recipient."""

    user_id: str
    type: str
    message: str
    related_entity_id: str
    related_entity_type: str = "booking"


NotificationSender = Callable[[Notification], None]
NameResolver = Callable[[str], Optional[str]]

_STATUS_MESSAGES = {
    BookingStatus.CONFIRMED: ("booking_confirmed", "Your {subject} lesson has been confirmed."),
    BookingStatus.REJECTED: ("booking_rejected", "Your {subject} lesson request was declined."),
    BookingStatus.CANCELLED: ("booking_cancelled", "Your {subject} lesson has been cancelled."),
    BookingStatus.COMPLETED: (
        "booking_completed",
        "Your {subject} lesson has been marked as completed.",
    ),
}


def _log_only_sender(notification: Notification) -> None:
    logger.info(
        "notification type=%s user=%s booking=%s",
        notification.type,
        notification.user_id,
        notification.related_entity_id,
    )


class NotificationService:
    """Turns booking events into notifications."""

    def __init__(
        self,
        sender: Optional[NotificationSender] = None,
        name_resolver: Optional[NameResolver] = None,
    ):
        self.sender = sender or _log_only_sender
        self.name_resolver = name_resolver
        self.logger = logging.getLogger(self.__class__.__name__)

    def __call__(self, event: Any) -> None:
        if isinstance(event, BookingCreated):
            self.notify_booking_created(event)
        elif isinstance(event, BookingStatusChanged):
            self.notify_status_changed(event)

    def _display_name(self, user_id: str, fallback: str) -> str:
        if self.name_resolver is None:
            return fallback
        return self.name_resolver(user_id) or fallback

    def notify_booking_created(self, event: BookingCreated) -> Notification:
        """Tell the teacher a student booked them."""
        student_name = self._display_name(event.student_id, "A student")
        notification = Notification(
            user_id=event.teacher_id,
            type="new_booking",
            message=f"{student_name} has booked a {event.subject} lesson with you.",
            related_entity_id=event.booking_id,
        )
        self.sender(notification)
        return notification

    def notify_status_changed(self, event: BookingStatusChanged) -> List[Notification]:
        """
        Tell the other participant about a status change.

        Confirm/reject/complete always go to the student. A cancellation goes
        to whoever did not cancel, or to both when the actor is unknown.
        """
        status = BookingStatus(event.new_status)
        if status not in _STATUS_MESSAGES:
            return []
        kind, template = _STATUS_MESSAGES[status]
        message = template.format(subject=event.subject or "")
        message = " ".join(message.split())

        if status is BookingStatus.CANCELLED:
            recipients = [
                user_id
                for user_id in (event.teacher_id, event.student_id)
                if user_id != event.actor_id
            ]
        else:
            recipients = [event.student_id]

        sent: List[Notification] = []
        for user_id in recipients:
            notification = Notification(
                user_id=user_id,
                type=kind,
                message=message,
                related_entity_id=event.booking_id,
            )
            self.sender(notification)
            sent.append(notification)
        self.logger.debug(
            "Sent %d notification(s) for booking %s -> %s",
            len(sent),
            event.booking_id,
            status.value,
        )
        return sent
