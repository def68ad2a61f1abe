"""In-process event publisher for post-commit side effects."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable, Dict, List, Protocol

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


EventListener = Callable[[Any], None]


class EventPublisher:
    """
    Dispatches domain events to registered listeners.

    Publishing happens after the booking transaction has committed. A
    listener that raises is logged and skipped; it never undoes the write
    that produced the event.
    """

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def register(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unregister(self, listener: EventListener) -> None:
        self._listeners = [existing for existing in self._listeners if existing is not listener]

    def publish(self, event: Event) -> int:
        """Deliver ``event`` to every listener; returns how many succeeded."""
        event_type = type(event).__name__
        payload = event.to_dict()
        for key, value in payload.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()

        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Event listener error: %s",
                    getattr(listener, "__qualname__", repr(listener)),
                    extra={"event_type": event_type, "event_payload": payload},
                )
                continue
            delivered += 1
        logger.info("booking_event=%s payload=%s", event_type, payload)
        return delivered
