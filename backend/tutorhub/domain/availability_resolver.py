"""
Availability resolution.

Turns a TeacherAvailabilityProfile into concrete bookable slots per date.
Everything here is pure: no clock reads, no I/O, no shared state, so the
functions are safe to call from any number of threads.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional

from ..core.exceptions import ValidationException
from ..core.ulid_helper import build_slot_id
from .time_rules import Slot, SlotSource, TeacherAvailabilityProfile


def slots_for_day(profile: TeacherAvailabilityProfile, day: date) -> List[Slot]:
    """
    Bookable slots for a single date.

    Break periods win outright. Otherwise the weekly template for the weekday
    and any specific-date additions are unioned as-is (overlaps and
    duplicates are surfaced, not merged) and ordered by start time.
    """
    if profile.is_on_break(day):
        return []

    slots: List[Slot] = []
    for rule in profile.recurring_slots:
        if rule.applies_to(day):
            slots.append(
                Slot(
                    id=build_slot_id(profile.teacher_id, day, rule.start_time, rule.end_time),
                    date=day,
                    start_time=rule.start_time,
                    end_time=rule.end_time,
                    source=SlotSource.RECURRING,
                )
            )
    for extra in profile.specific_date_slots:
        if extra.applies_to(day):
            slots.append(
                Slot(
                    id=build_slot_id(profile.teacher_id, day, extra.start_time, extra.end_time),
                    date=day,
                    start_time=extra.start_time,
                    end_time=extra.end_time,
                    source=SlotSource.SPECIFIC,
                )
            )
    # sorted() is stable: equal windows keep recurring-before-specific order
    return sorted(slots, key=lambda slot: (slot.start_time, slot.end_time))


def resolve(
    profile: TeacherAvailabilityProfile,
    from_date: date,
    horizon_days: int,
    *,
    today: Optional[date] = None,
) -> Dict[date, List[Slot]]:
    """
    Resolve slots for every date in ``[from_date, from_date + horizon_days)``.

    Args:
        profile: Validated availability rules
        from_date: First date of the window
        horizon_days: Number of days in the window
        today: Current date in the teacher's zone; dates before it are left
            out of the result. The caller supplies it so this stays pure.

    Returns:
        Ordered mapping of date -> slots (an empty list for blocked days)
    """
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days < 0:
        raise ValidationException(
            "horizon_days must be a non-negative integer", details={"horizon_days": horizon_days}
        )

    resolved: Dict[date, List[Slot]] = {}
    for offset in range(horizon_days):
        day = from_date + timedelta(days=offset)
        if today is not None and day < today:
            continue
        resolved[day] = slots_for_day(profile, day)
    return resolved
