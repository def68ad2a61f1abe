# backend/tutorhub/services/availability_service.py
"""
Availability Service

Owns TeacherAvailabilityProfile persistence and answers "what can a
student book" questions by running the pure resolver over the stored rules.

Profiles are created lazily with the default weekday template the first
time anyone asks for them. Only the owning teacher may edit rules.
"""

from datetime import date, datetime, timezone
import logging
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException, UnauthorizedActorException, ValidationException
from ..domain.availability_resolver import resolve, slots_for_day
from ..domain.time_rules import (
    BreakKind,
    BreakPeriod,
    DateLike,
    RecurringSlot,
    Slot,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
    TimeLike,
    default_recurring_template,
    parse_date,
)
from ..models.availability import TeacherAvailability
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Service for reading and editing teacher availability."""

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        timezone_service: Optional[TimezoneService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.timezone_service = timezone_service or TimezoneService()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # Profile loading

    def _load_row(self, teacher_id: str) -> TeacherAvailability:
        """Existing profile row, or a freshly created default one."""
        row = self.repository.get_profile_row(teacher_id)
        if row is not None:
            return row

        with self.transaction():
            created = self.repository.create_profile(
                teacher_id,
                settings.default_timezone,
                default_recurring_template(),
            )
        if created is not None:
            self.logger.info(f"Created default availability profile for teacher {teacher_id}")
            return created

        row = self.repository.get_profile_row(teacher_id)
        if row is None:
            raise NotFoundException(
                f"Availability profile for teacher {teacher_id} could not be loaded",
                code="AVAILABILITY_PROFILE_MISSING",
            )
        return row

    @BaseService.measure_operation("get_profile")
    def get_profile(self, teacher_id: str) -> TeacherAvailabilityProfile:
        """Return the teacher's rules, creating the default template on first use."""
        return self.repository.to_profile(self._load_row(teacher_id))

    def today_for(
        self, profile: TeacherAvailabilityProfile, now: Optional[datetime] = None
    ) -> date:
        return self.timezone_service.today_in_zone(profile.timezone, now or self.clock())

    # Reads

    @BaseService.measure_operation("get_bookable_slots")
    def get_bookable_slots(
        self,
        teacher_id: str,
        from_date: Optional[date] = None,
        horizon_days: Optional[int] = None,
        *,
        include_empty: bool = False,
        now: Optional[datetime] = None,
    ) -> Dict[date, List[Slot]]:
        """
        Bookable slots for the rolling horizon.

        ``from_date`` is clamped to today in the teacher's zone; the horizon
        defaults to the configured number of days and may not exceed
        ``max_horizon_days``.
        """
        days = settings.availability_horizon_days if horizon_days is None else horizon_days
        if days > settings.max_horizon_days:
            raise ValidationException(
                f"Cannot resolve more than {settings.max_horizon_days} days at once",
                details={"horizon_days": days},
            )

        profile = self.get_profile(teacher_id)
        today = self.today_for(profile, now)
        start = today if from_date is None or from_date < today else from_date

        resolved = resolve(profile, start, days, today=today)
        if include_empty:
            return resolved
        return {day: slots for day, slots in resolved.items() if slots}

    def get_slots_for_date(
        self,
        teacher_id: str,
        day: date,
        *,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        """Resolved slots for one date; empty for past dates and break days."""
        profile = self.get_profile(teacher_id)
        current = today or self.today_for(profile, now)
        return resolve(profile, day, 1, today=current).get(day, [])

    def is_date_blocked(self, teacher_id: str, day: DateLike) -> bool:
        """True when ``day`` falls inside one of the teacher's break periods."""
        return self.get_profile(teacher_id).is_on_break(parse_date(day))

    def preview_day(self, teacher_id: str, day: DateLike) -> List[Slot]:
        """Slots a day would offer, ignoring the today cutoff (editor preview)."""
        return slots_for_day(self.get_profile(teacher_id), parse_date(day))

    # Edits

    @staticmethod
    def _require_owner(teacher_id: str, actor_id: str) -> None:
        if actor_id != teacher_id:
            raise UnauthorizedActorException(
                "Only the teacher can change their availability",
                details={"teacher_id": teacher_id, "actor_id": actor_id},
            )

    def _reject_past_date(self, row: TeacherAvailability, day: date) -> None:
        today = self.timezone_service.today_in_zone(row.timezone, self.clock())
        if day < today:
            raise ValidationException(
                "Specific-date availability must be today or later",
                details={"date": day.isoformat(), "today": today.isoformat()},
            )

    @BaseService.measure_operation("add_recurring_slot")
    def add_recurring_slot(
        self,
        teacher_id: str,
        actor_id: str,
        day_of_week: int,
        start_time: TimeLike,
        end_time: TimeLike,
    ) -> RecurringSlot:
        self._require_owner(teacher_id, actor_id)
        slot = RecurringSlot(day_of_week=day_of_week, start_time=start_time, end_time=end_time)
        row = self._load_row(teacher_id)
        with self.transaction():
            child = self.repository.add_recurring(row, slot)
        self.log_operation("add_recurring_slot", teacher_id=teacher_id, rule_id=child.id)
        return RecurringSlot(
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            rule_id=child.id,
        )

    @BaseService.measure_operation("add_specific_date_slot")
    def add_specific_date_slot(
        self,
        teacher_id: str,
        actor_id: str,
        slot_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
    ) -> SpecificDateSlot:
        self._require_owner(teacher_id, actor_id)
        slot = SpecificDateSlot(date=slot_date, start_time=start_time, end_time=end_time)
        row = self._load_row(teacher_id)
        self._reject_past_date(row, slot.date)
        with self.transaction():
            child = self.repository.add_specific(row, slot)
        self.log_operation("add_specific_date_slot", teacher_id=teacher_id, rule_id=child.id)
        return SpecificDateSlot(
            date=slot.date, start_time=slot.start_time, end_time=slot.end_time, rule_id=child.id
        )

    @BaseService.measure_operation("add_break_period")
    def add_break_period(
        self,
        teacher_id: str,
        actor_id: str,
        start_date: DateLike,
        end_date: DateLike,
        reason: str = "",
        kind: BreakKind = BreakKind.BREAK,
    ) -> BreakPeriod:
        self._require_owner(teacher_id, actor_id)
        period = BreakPeriod(start_date=start_date, end_date=end_date, reason=reason, kind=kind)
        row = self._load_row(teacher_id)
        with self.transaction():
            child = self.repository.add_break(row, period)
        self.log_operation("add_break_period", teacher_id=teacher_id, rule_id=child.id)
        return BreakPeriod(
            start_date=period.start_date,
            end_date=period.end_date,
            reason=period.reason,
            kind=period.kind,
            rule_id=child.id,
        )

    def _remove(self, teacher_id: str, actor_id: str, collection: str, rule_id: str) -> None:
        self._require_owner(teacher_id, actor_id)
        row = self._load_row(teacher_id)
        with self.transaction():
            removed = self.repository.remove_rule(row, collection, rule_id)
        if not removed:
            raise NotFoundException(
                f"Availability rule {rule_id} not found",
                code="RULE_NOT_FOUND",
                details={"teacher_id": teacher_id, "rule_id": rule_id},
            )
        self.log_operation(f"remove_{collection}", teacher_id=teacher_id, rule_id=rule_id)

    @BaseService.measure_operation("remove_recurring_slot")
    def remove_recurring_slot(self, teacher_id: str, actor_id: str, rule_id: str) -> None:
        self._remove(teacher_id, actor_id, "recurring_slots", rule_id)

    @BaseService.measure_operation("remove_specific_date_slot")
    def remove_specific_date_slot(self, teacher_id: str, actor_id: str, rule_id: str) -> None:
        self._remove(teacher_id, actor_id, "specific_date_slots", rule_id)

    @BaseService.measure_operation("remove_break_period")
    def remove_break_period(self, teacher_id: str, actor_id: str, rule_id: str) -> None:
        self._remove(teacher_id, actor_id, "break_periods", rule_id)

    @BaseService.measure_operation("replace_rules")
    def replace_rules(
        self,
        teacher_id: str,
        actor_id: str,
        recurring_slots: Iterable[RecurringSlot],
        specific_date_slots: Iterable[SpecificDateSlot],
        break_periods: Iterable[BreakPeriod],
        *,
        zone_id: Optional[str] = None,
    ) -> TeacherAvailabilityProfile:
        """
        Save the whole editor state at once.

        Specific-date slots dated before today are dropped; they could never
        resolve again.
        """
        self._require_owner(teacher_id, actor_id)
        row = self._load_row(teacher_id)
        if zone_id is not None:
            zone_id = self.timezone_service.validate_zone(zone_id)
        today = self.timezone_service.today_in_zone(zone_id or row.timezone, self.clock())

        recurring = list(recurring_slots)
        specific = [slot for slot in specific_date_slots if slot.date >= today]
        breaks = list(break_periods)

        with self.transaction():
            if zone_id is not None:
                self.repository.set_timezone(row, zone_id)
            self.repository.replace_rules(row, recurring, specific, breaks)

        self.log_operation(
            "replace_rules",
            teacher_id=teacher_id,
            recurring=len(recurring),
            specific=len(specific),
            breaks=len(breaks),
        )
        return self.repository.to_profile(row)

    @BaseService.measure_operation("set_timezone")
    def set_timezone(self, teacher_id: str, actor_id: str, zone_id: str) -> str:
        self._require_owner(teacher_id, actor_id)
        canonical = self.timezone_service.validate_zone(zone_id)
        row = self._load_row(teacher_id)
        with self.transaction():
            self.repository.set_timezone(row, canonical)
        self.log_operation("set_timezone", teacher_id=teacher_id, zone=canonical)
        return canonical
