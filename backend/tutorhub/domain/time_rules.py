# backend/tutorhub/domain/time_rules.py
"""
Availability rule value types.

A teacher's availability is described by three kinds of rules, all in the
teacher's local time zone:

- RecurringSlot: a weekly window (dayOfWeek 0 = Sunday ... 6 = Saturday)
- SpecificDateSlot: an extra window on one calendar date, layered on top
  of whatever the weekly template gives that day
- BreakPeriod: an inclusive date range with no availability at all

The types are frozen and validate on construction; malformed data never
reaches the resolver or the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from ..core.constants import (
    DEFAULT_RECURRING_DAYS,
    DEFAULT_RECURRING_WINDOWS,
    SATURDAY,
    SUNDAY,
)
from ..core.exceptions import ValidationException

TimeLike = Union[time, str]
DateLike = Union[date, str]


def parse_wall_time(value: TimeLike) -> time:
    """Accept ``time`` or ``"HH:MM"`` / ``"HH:MM:SS"`` and return a naive ``time``."""
    if isinstance(value, time):
        if value.tzinfo is not None:
            raise ValidationException(
                "Wall-clock times must not carry a timezone", details={"value": str(value)}
            )
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationException(
                f"Invalid time '{value}', expected HH:MM", details={"value": value}
            ) from exc
    raise ValidationException(f"Cannot interpret {type(value).__name__} as a time")


def parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationException(
                f"Invalid date '{value}', expected YYYY-MM-DD", details={"value": value}
            ) from exc
    raise ValidationException(f"Cannot interpret {type(value).__name__} as a date")


def day_of_week(day: date) -> int:
    """Sunday-based weekday index used by recurring slots."""
    return (day.weekday() + 1) % 7


def _check_window(start: time, end: time) -> None:
    if start >= end:
        raise ValidationException(
            "End time must be after start time",
            details={"start_time": start.strftime("%H:%M"), "end_time": end.strftime("%H:%M")},
        )


class BreakKind(str, Enum):
    BREAK = "break"
    LEAVE = "leave"


class SlotSource(str, Enum):
    RECURRING = "recurring"
    SPECIFIC = "specific"


@dataclass(frozen=True)
class RecurringSlot:
    """Weekly-repeating bookable window."""

    day_of_week: int
    start_time: time
    end_time: time
    rule_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.day_of_week, bool) or not isinstance(self.day_of_week, int):
            raise ValidationException("day_of_week must be an integer 0..6")
        if not SUNDAY <= self.day_of_week <= SATURDAY:
            raise ValidationException(
                "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
                details={"day_of_week": self.day_of_week},
            )
        object.__setattr__(self, "start_time", parse_wall_time(self.start_time))
        object.__setattr__(self, "end_time", parse_wall_time(self.end_time))
        _check_window(self.start_time, self.end_time)

    def applies_to(self, day: date) -> bool:
        return day_of_week(day) == self.day_of_week


@dataclass(frozen=True)
class SpecificDateSlot:
    """One-off extra window on an exact date."""

    date: date
    start_time: time
    end_time: time
    rule_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "start_time", parse_wall_time(self.start_time))
        object.__setattr__(self, "end_time", parse_wall_time(self.end_time))
        _check_window(self.start_time, self.end_time)

    def applies_to(self, day: date) -> bool:
        return self.date == day


@dataclass(frozen=True)
class BreakPeriod:
    """Inclusive date range during which the teacher takes no lessons."""

    start_date: date
    end_date: date
    reason: str = ""
    kind: BreakKind = BreakKind.BREAK
    rule_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", parse_date(self.start_date))
        object.__setattr__(self, "end_date", parse_date(self.end_date))
        try:
            object.__setattr__(self, "kind", BreakKind(self.kind))
        except ValueError as exc:
            raise ValidationException(
                "Break kind must be 'break' or 'leave'", details={"kind": str(self.kind)}
            ) from exc
        object.__setattr__(self, "reason", (self.reason or "").strip())
        if self.end_date < self.start_date:
            raise ValidationException(
                "Break end date must not be before its start date",
                details={
                    "start_date": self.start_date.isoformat(),
                    "end_date": self.end_date.isoformat(),
                },
            )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class TeacherAvailabilityProfile:
    """All availability rules owned by one teacher."""

    teacher_id: str
    timezone: str
    recurring_slots: Tuple[RecurringSlot, ...] = ()
    specific_date_slots: Tuple[SpecificDateSlot, ...] = ()
    break_periods: Tuple[BreakPeriod, ...] = ()

    def __post_init__(self) -> None:
        if not self.teacher_id:
            raise ValidationException("teacher_id is required")
        if not self.timezone:
            raise ValidationException("timezone is required")
        for name, kind in (
            ("recurring_slots", RecurringSlot),
            ("specific_date_slots", SpecificDateSlot),
            ("break_periods", BreakPeriod),
        ):
            items = tuple(getattr(self, name))
            for item in items:
                if not isinstance(item, kind):
                    raise ValidationException(
                        f"{name} may only contain {kind.__name__} values",
                        details={"got": type(item).__name__},
                    )
            object.__setattr__(self, name, items)

    def is_on_break(self, day: date) -> bool:
        return any(period.contains(day) for period in self.break_periods)


@dataclass(frozen=True)
class Slot:
    """A resolved, bookable window on one concrete date."""

    id: str
    date: date
    start_time: time
    end_time: time
    source: SlotSource = field(default=SlotSource.RECURRING, compare=False)

    def matches(self, start_time: time, end_time: time) -> bool:
        return self.start_time == start_time and self.end_time == end_time


def default_recurring_template(
    days: Iterable[int] = DEFAULT_RECURRING_DAYS,
) -> Tuple[RecurringSlot, ...]:
    """Monday-Friday template given to a teacher who has never saved availability."""
    return tuple(
        RecurringSlot(day_of_week=day, start_time=start, end_time=end)
        for day in days
        for start, end in DEFAULT_RECURRING_WINDOWS
    )
