"""Pure scheduling domain: time rules and availability resolution."""

from .availability_resolver import resolve, slots_for_day
from .time_rules import (
    BreakKind,
    BreakPeriod,
    RecurringSlot,
    Slot,
    SlotSource,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
    day_of_week,
    default_recurring_template,
    parse_wall_time,
)

__all__ = [
    "BreakKind",
    "BreakPeriod",
    "RecurringSlot",
    "Slot",
    "SlotSource",
    "SpecificDateSlot",
    "TeacherAvailabilityProfile",
    "day_of_week",
    "default_recurring_template",
    "parse_wall_time",
    "resolve",
    "slots_for_day",
]
