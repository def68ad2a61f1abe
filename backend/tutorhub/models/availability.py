# backend/tutorhub/models/availability.py
"""
Availability models.

A teacher owns one TeacherAvailability row plus child rows for each rule
kind. Rows are converted into the frozen domain types by the availability
repository; nothing else reads them directly.

Classes:
    TeacherAvailability: Profile header (zone, timestamps)
    RecurringAvailability: Weekly windows
    SpecificDateAvailability: One-off windows on a date
    TeacherBreak: Break / leave date ranges
"""

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class TeacherAvailability(Base):
    """Availability profile header, keyed by teacher identity."""

    __tablename__ = "teacher_availability_profiles"

    teacher_id = Column(String(64), primary_key=True)
    timezone = Column(String(64), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)

    recurring_slots = relationship(
        "RecurringAvailability",
        cascade="all, delete-orphan",
        back_populates="profile",
    )
    specific_date_slots = relationship(
        "SpecificDateAvailability",
        cascade="all, delete-orphan",
        back_populates="profile",
    )
    break_periods = relationship(
        "TeacherBreak",
        cascade="all, delete-orphan",
        back_populates="profile",
    )

    def __repr__(self) -> str:
        return f"<TeacherAvailability {self.teacher_id} tz={self.timezone}>"


class RecurringAvailability(Base):
    __tablename__ = "recurring_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(64),
        ForeignKey("teacher_availability_profiles.teacher_id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    profile = relationship("TeacherAvailability", back_populates="recurring_slots")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_recurring_slots_day"),
        CheckConstraint("start_time < end_time", name="ck_recurring_slots_time_order"),
        Index("ix_recurring_slots_teacher_day", "teacher_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<RecurringAvailability day={self.day_of_week} {self.start_time}-{self.end_time}>"


class SpecificDateAvailability(Base):
    __tablename__ = "specific_date_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(64),
        ForeignKey("teacher_availability_profiles.teacher_id", ondelete="CASCADE"),
        nullable=False,
    )
    specific_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    profile = relationship("TeacherAvailability", back_populates="specific_date_slots")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_specific_date_slots_time_order"),
        Index("ix_specific_date_slots_teacher_date", "teacher_id", "specific_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<SpecificDateAvailability {self.specific_date} {self.start_time}-{self.end_time}>"
        )


class TeacherBreak(Base):
    """Teacher break/leave dates"""

    __tablename__ = "break_periods"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(64),
        ForeignKey("teacher_availability_profiles.teacher_id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=False, default="")
    kind = Column(String(10), nullable=False, default="break")
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    profile = relationship("TeacherAvailability", back_populates="break_periods")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_break_periods_date_order"),
        CheckConstraint("kind IN ('break', 'leave')", name="ck_break_periods_kind"),
        Index("ix_break_periods_teacher_dates", "teacher_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<TeacherBreak {self.start_date}..{self.end_date} - {self.reason or 'No reason'}>"
