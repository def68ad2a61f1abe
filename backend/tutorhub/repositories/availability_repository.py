# backend/tutorhub/repositories/availability_repository.py
"""
Availability Repository

Persistence for teacher availability profiles. This is the one place where
rule rows become TimeRules value types (``to_profile``); services and the
resolver only ever see the frozen domain objects.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import RepositoryException
from ..domain.time_rules import (
    BreakKind,
    BreakPeriod,
    RecurringSlot,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
)
from ..models.availability import (
    RecurringAvailability,
    SpecificDateAvailability,
    TeacherAvailability,
    TeacherBreak,
)
from .base_repository import BaseRepository


class AvailabilityRepository(BaseRepository[TeacherAvailability]):
    """Repository for TeacherAvailability rows and their rule children."""

    def __init__(self, db: Session):
        super().__init__(db, TeacherAvailability)

    def get_profile_row(self, teacher_id: str) -> Optional[TeacherAvailability]:
        try:
            return (
                self.db.query(TeacherAvailability)
                .options(
                    selectinload(TeacherAvailability.recurring_slots),
                    selectinload(TeacherAvailability.specific_date_slots),
                    selectinload(TeacherAvailability.break_periods),
                )
                .filter(TeacherAvailability.teacher_id == teacher_id)
                .one_or_none()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading availability for {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to load availability: {str(e)}")

    def create_profile(
        self,
        teacher_id: str,
        timezone: str,
        recurring_slots: Iterable[RecurringSlot] = (),
    ) -> Optional[TeacherAvailability]:
        """
        Insert a profile with an initial weekly template.

        Runs in a savepoint; returns None when another caller created the
        profile first so the caller can re-read it.
        """
        savepoint = self.db.begin_nested()
        try:
            row = TeacherAvailability(teacher_id=teacher_id, timezone=timezone)
            row.recurring_slots = [self._recurring_row(slot) for slot in recurring_slots]
            self.db.add(row)
            self.db.flush()
        except IntegrityError:
            savepoint.rollback()
            self.logger.info("Availability profile for %s created concurrently", teacher_id)
            return None
        savepoint.commit()
        return row

    def set_timezone(self, row: TeacherAvailability, timezone: str) -> None:
        row.timezone = timezone
        self.db.flush()

    def add_recurring(self, row: TeacherAvailability, slot: RecurringSlot) -> RecurringAvailability:
        child = self._recurring_row(slot)
        row.recurring_slots.append(child)
        self.db.flush()
        return child

    def add_specific(
        self, row: TeacherAvailability, slot: SpecificDateSlot
    ) -> SpecificDateAvailability:
        child = self._specific_row(slot)
        row.specific_date_slots.append(child)
        self.db.flush()
        return child

    def add_break(self, row: TeacherAvailability, period: BreakPeriod) -> TeacherBreak:
        child = self._break_row(period)
        row.break_periods.append(child)
        self.db.flush()
        return child

    def remove_rule(self, row: TeacherAvailability, collection: str, rule_id: str) -> bool:
        """Remove one rule row from a profile collection; False if it is not there."""
        children = getattr(row, collection)
        for child in list(children):
            if child.id == rule_id:
                children.remove(child)  # delete-orphan issues the DELETE on flush
                try:
                    self.db.flush()
                except SQLAlchemyError as e:
                    self.logger.error(f"Error deleting {collection} rule {rule_id}: {str(e)}")
                    raise RepositoryException(f"Failed to delete rule: {str(e)}")
                return True
        return False

    def replace_rules(
        self,
        row: TeacherAvailability,
        recurring_slots: Iterable[RecurringSlot],
        specific_date_slots: Iterable[SpecificDateSlot],
        break_periods: Iterable[BreakPeriod],
    ) -> None:
        """Swap every rule list in one flush (delete-orphan removes the old rows)."""
        row.recurring_slots = [self._recurring_row(slot) for slot in recurring_slots]
        row.specific_date_slots = [self._specific_row(slot) for slot in specific_date_slots]
        row.break_periods = [self._break_row(period) for period in break_periods]
        self.db.flush()

    # Row <-> domain conversion

    @staticmethod
    def to_profile(row: TeacherAvailability) -> TeacherAvailabilityProfile:
        recurring = sorted(
            (
                RecurringSlot(
                    day_of_week=r.day_of_week,
                    start_time=r.start_time,
                    end_time=r.end_time,
                    rule_id=r.id,
                )
                for r in row.recurring_slots
            ),
            key=lambda s: (s.day_of_week, s.start_time, s.end_time),
        )
        specific = sorted(
            (
                SpecificDateSlot(
                    date=s.specific_date,
                    start_time=s.start_time,
                    end_time=s.end_time,
                    rule_id=s.id,
                )
                for s in row.specific_date_slots
            ),
            key=lambda s: (s.date, s.start_time, s.end_time),
        )
        breaks = sorted(
            (
                BreakPeriod(
                    start_date=b.start_date,
                    end_date=b.end_date,
                    reason=b.reason or "",
                    kind=BreakKind(b.kind),
                    rule_id=b.id,
                )
                for b in row.break_periods
            ),
            key=lambda b: (b.start_date, b.end_date),
        )
        return TeacherAvailabilityProfile(
            teacher_id=row.teacher_id,
            timezone=row.timezone,
            recurring_slots=tuple(recurring),
            specific_date_slots=tuple(specific),
            break_periods=tuple(breaks),
        )

    @staticmethod
    def _recurring_row(slot: RecurringSlot) -> RecurringAvailability:
        return RecurringAvailability(
            day_of_week=slot.day_of_week, start_time=slot.start_time, end_time=slot.end_time
        )

    @staticmethod
    def _specific_row(slot: SpecificDateSlot) -> SpecificDateAvailability:
        return SpecificDateAvailability(
            specific_date=slot.date, start_time=slot.start_time, end_time=slot.end_time
        )

    @staticmethod
    def _break_row(period: BreakPeriod) -> TeacherBreak:
        return TeacherBreak(
            start_date=period.start_date,
            end_date=period.end_date,
            reason=period.reason,
            kind=period.kind.value,
        )
