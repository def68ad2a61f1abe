"""Tests for availability resolution."""

from datetime import date, time

import pytest

from tutorhub.core.exceptions import ValidationException
from tutorhub.core.ulid_helper import build_slot_id
from tutorhub.domain.availability_resolver import resolve, slots_for_day
from tutorhub.domain.time_rules import (
    BreakPeriod,
    RecurringSlot,
    SlotSource,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
)

MONDAY = date(2024, 6, 17)


def _profile(recurring=(), specific=(), breaks=()):
    return TeacherAvailabilityProfile(
        teacher_id="teacher-1",
        timezone="America/New_York",
        recurring_slots=tuple(recurring),
        specific_date_slots=tuple(specific),
        break_periods=tuple(breaks),
    )


class TestSlotsForDay:
    def test_recurring_and_specific_are_unioned(self):
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00")],
            specific=[SpecificDateSlot(MONDAY, "14:00", "15:00")],
        )
        slots = slots_for_day(profile, MONDAY)
        assert [(s.start_time, s.end_time) for s in slots] == [
            (time(9, 0), time(10, 0)),
            (time(14, 0), time(15, 0)),
        ]
        assert [s.source for s in slots] == [SlotSource.RECURRING, SlotSource.SPECIFIC]

    def test_break_wins_over_everything(self):
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00")],
            specific=[SpecificDateSlot(MONDAY, "14:00", "15:00")],
            breaks=[BreakPeriod(MONDAY, MONDAY)],
        )
        assert slots_for_day(profile, MONDAY) == []

    def test_overlapping_windows_are_surfaced(self):
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00")],
            specific=[SpecificDateSlot(MONDAY, "09:30", "10:30")],
        )
        slots = slots_for_day(profile, MONDAY)
        assert len(slots) == 2
        assert slots[0].start_time == time(9, 0)
        assert slots[1].start_time == time(9, 30)

    def test_duplicate_windows_share_an_id(self):
        """Same window from both sources: two entries, same identity, recurring first."""
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00")],
            specific=[SpecificDateSlot(MONDAY, "09:00", "10:00")],
        )
        slots = slots_for_day(profile, MONDAY)
        assert len(slots) == 2
        assert slots[0].id == slots[1].id
        assert slots[0].source is SlotSource.RECURRING

    def test_sorted_by_start_time(self):
        profile = _profile(
            recurring=[
                RecurringSlot(1, "16:00", "17:00"),
                RecurringSlot(1, "08:00", "09:00"),
            ],
            specific=[SpecificDateSlot(MONDAY, "12:00", "13:00")],
        )
        starts = [s.start_time for s in slots_for_day(profile, MONDAY)]
        assert starts == sorted(starts)

    def test_slot_ids_are_deterministic(self):
        profile = _profile(recurring=[RecurringSlot(1, "09:00", "10:00")])
        slot = slots_for_day(profile, MONDAY)[0]
        assert slot.id == build_slot_id("teacher-1", MONDAY, time(9, 0), time(10, 0))
        assert slot.id.startswith("slot_")
        other_week = slots_for_day(profile, date(2024, 6, 24))[0]
        assert other_week.id != slot.id


class TestResolve:
    def test_june_scenario(self):
        """Weekly Monday slot, extra slot and break on the 17th."""
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00")],
            specific=[SpecificDateSlot("2024-06-17", "14:00", "15:00")],
            breaks=[BreakPeriod("2024-06-17", "2024-06-17")],
        )
        resolved = resolve(profile, date(2024, 6, 17), 8)

        assert resolved[date(2024, 6, 17)] == []
        following = resolved[date(2024, 6, 24)]
        assert len(following) == 1
        assert (following[0].start_time, following[0].end_time) == (time(9, 0), time(10, 0))
        # nothing on Tuesday..Sunday
        assert all(not resolved[date(2024, 6, d)] for d in range(18, 24))

    def test_window_covers_every_date(self):
        resolved = resolve(_profile(), date(2024, 6, 10), 14)
        assert list(resolved) == [date(2024, 6, 10 + i) for i in range(14)]

    def test_dates_before_today_are_dropped(self):
        profile = _profile(recurring=[RecurringSlot(day, "09:00", "10:00") for day in range(7)])
        resolved = resolve(profile, date(2024, 6, 8), 5, today=date(2024, 6, 10))
        assert list(resolved) == [date(2024, 6, 10), date(2024, 6, 11), date(2024, 6, 12)]

    def test_resolution_is_idempotent(self):
        profile = _profile(
            recurring=[RecurringSlot(1, "09:00", "10:00"), RecurringSlot(3, "13:00", "14:00")],
            specific=[SpecificDateSlot("2024-06-20", "18:00", "19:00")],
            breaks=[BreakPeriod("2024-06-26", "2024-06-28")],
        )
        first = resolve(profile, date(2024, 6, 17), 21)
        second = resolve(profile, date(2024, 6, 17), 21)
        assert first == second
        assert [s.id for day in first.values() for s in day] == [
            s.id for day in second.values() for s in day
        ]

    def test_zero_horizon_is_empty(self):
        assert resolve(_profile(), date(2024, 6, 17), 0) == {}

    @pytest.mark.parametrize("horizon", [-1, 1.5, True])
    def test_invalid_horizon(self, horizon):
        with pytest.raises(ValidationException):
            resolve(_profile(), date(2024, 6, 17), horizon)

    def test_multi_day_leave_blocks_range(self):
        profile = _profile(
            recurring=[RecurringSlot(day, "09:00", "10:00") for day in range(1, 6)],
            breaks=[BreakPeriod("2024-06-18", "2024-06-20", kind="leave")],
        )
        resolved = resolve(profile, date(2024, 6, 17), 5)
        assert [len(resolved[date(2024, 6, d)]) for d in range(17, 22)] == [1, 0, 0, 0, 1]
