# backend/tutorhub/services/booking_scheduler.py
"""
Booking Scheduler

Turns a student's slot selection into a booking:

1. re-resolve the teacher's availability for the requested date and make
   sure the exact window is still offered
2. convert the local window to UTC in the teacher's zone
3. reserve it through BookingStore.try_create

Collaborators are passed in; the scheduler holds no session of its own.
"""

from datetime import date, datetime, time
import logging
from typing import Optional

from ..core.exceptions import SlotNoLongerAvailableException, SlotTakenException
from ..core.metrics import prometheus_metrics
from ..domain.availability_resolver import resolve
from ..domain.time_rules import (
    DateLike,
    Slot,
    TeacherAvailabilityProfile,
    TimeLike,
    parse_date,
    parse_wall_time,
)
from ..models.booking import Booking
from .availability_service import AvailabilityService
from .base import BaseService
from .booking_store import BookingStore
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


class BookingScheduler:
    """Orchestrates availability check, UTC conversion and reservation."""

    def __init__(
        self,
        availability_service: AvailabilityService,
        booking_store: BookingStore,
        timezone_service: Optional[TimezoneService] = None,
    ):
        self.availability_service = availability_service
        self.booking_store = booking_store
        self.timezone_service = timezone_service or TimezoneService()
        self.logger = logging.getLogger(self.__class__.__name__)

    @BaseService.measure_operation("book_slot")
    def book_slot(
        self,
        teacher_id: str,
        student_id: str,
        booking_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        teacher_zone: Optional[str],
        subject: str,
        module_id: Optional[str] = None,
        notes: str = "",
        *,
        timeout_s: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Book one slot for a student.

        Raises (BookingError):
            SlotNoLongerAvailableException: the window is not offered on that date any more
            SlotTakenException: another active booking holds the slot
            BookingTimeoutException: persistence did not answer in time
            AmbiguousLocalTimeException / NonexistentLocalTimeException: DST edge
        """
        day = parse_date(booking_date)
        start = parse_wall_time(start_time)
        end = parse_wall_time(end_time)

        profile = self.availability_service.get_profile(teacher_id)
        zone_id = self.timezone_service.validate_zone(teacher_zone or profile.timezone)
        today = self.timezone_service.today_in_zone(zone_id, now or self.booking_store.clock())

        slot = self._find_slot(profile, day, start, end, today)
        if slot is None:
            details = {
                "teacher_id": teacher_id,
                "date": day.isoformat(),
                "start_time": start.strftime("%H:%M"),
                "end_time": end.strftime("%H:%M"),
            }
            prometheus_metrics.record_booking_conflict("slot_unavailable")
            self.logger.info("Requested slot is no longer offered", extra=details)
            raise SlotNoLongerAvailableException(details=details)

        start_utc, end_utc = self.timezone_service.window_to_utc(day, start, end, zone_id)

        try:
            return self.booking_store.try_create(
                teacher_id,
                student_id,
                slot.id,
                day,
                start,
                end,
                subject,
                module_id,
                notes,
                start_utc=start_utc,
                end_utc=end_utc,
                lesson_timezone=zone_id,
                timeout_s=timeout_s,
            )
        except SlotTakenException:
            self.logger.info(
                "Slot taken by a concurrent booking",
                extra={"teacher_id": teacher_id, "slot_id": slot.id, "student_id": student_id},
            )
            raise

    @staticmethod
    def _find_slot(
        profile: TeacherAvailabilityProfile, day: date, start: time, end: time, today: date
    ) -> Optional[Slot]:
        for slot in resolve(profile, day, 1, today=today).get(day, []):
            if slot.matches(start, end):
                return slot
        return None
