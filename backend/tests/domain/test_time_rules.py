"""Tests for availability rule value types."""

from datetime import date, time

import pytest

from tutorhub.core.exceptions import ValidationException
from tutorhub.domain.time_rules import (
    BreakKind,
    BreakPeriod,
    RecurringSlot,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
    day_of_week,
    default_recurring_template,
    parse_date,
    parse_wall_time,
)


class TestParsing:
    def test_parse_wall_time_accepts_strings(self):
        assert parse_wall_time("09:30") == time(9, 30)
        assert parse_wall_time(" 14:00:00 ") == time(14, 0)

    def test_parse_wall_time_rejects_garbage(self):
        with pytest.raises(ValidationException, match="expected HH:MM"):
            parse_wall_time("9.30am")

    def test_parse_wall_time_rejects_aware_times(self):
        from datetime import timezone

        with pytest.raises(ValidationException):
            parse_wall_time(time(9, 0, tzinfo=timezone.utc))

    def test_parse_date(self):
        assert parse_date("2024-06-17") == date(2024, 6, 17)
        with pytest.raises(ValidationException):
            parse_date("17/06/2024")

    def test_day_of_week_is_sunday_based(self):
        """2024-06-09 was a Sunday, 2024-06-15 a Saturday."""
        assert day_of_week(date(2024, 6, 9)) == 0
        assert day_of_week(date(2024, 6, 10)) == 1
        assert day_of_week(date(2024, 6, 15)) == 6


class TestRecurringSlot:
    def test_valid_slot(self):
        slot = RecurringSlot(day_of_week=1, start_time="09:00", end_time="10:00")
        assert slot.start_time == time(9, 0)
        assert slot.applies_to(date(2024, 6, 10))
        assert not slot.applies_to(date(2024, 6, 11))

    @pytest.mark.parametrize("day", [-1, 7])
    def test_day_out_of_range(self, day):
        with pytest.raises(ValidationException, match="between 0"):
            RecurringSlot(day_of_week=day, start_time="09:00", end_time="10:00")

    def test_bool_is_not_a_day(self):
        with pytest.raises(ValidationException):
            RecurringSlot(day_of_week=True, start_time="09:00", end_time="10:00")

    @pytest.mark.parametrize("start,end", [("10:00", "09:00"), ("10:00", "10:00")])
    def test_window_must_be_positive(self, start, end):
        with pytest.raises(ValidationException, match="End time must be after start time"):
            RecurringSlot(day_of_week=2, start_time=start, end_time=end)

    def test_rule_id_does_not_affect_equality(self):
        a = RecurringSlot(day_of_week=1, start_time="09:00", end_time="10:00", rule_id="a")
        b = RecurringSlot(day_of_week=1, start_time="09:00", end_time="10:00", rule_id="b")
        assert a == b


class TestSpecificDateSlot:
    def test_parses_date_string(self):
        slot = SpecificDateSlot(date="2024-06-17", start_time="14:00", end_time="15:00")
        assert slot.date == date(2024, 6, 17)
        assert slot.applies_to(date(2024, 6, 17))

    def test_rejects_inverted_window(self):
        with pytest.raises(ValidationException):
            SpecificDateSlot(date="2024-06-17", start_time="15:00", end_time="14:00")


class TestBreakPeriod:
    def test_single_day_break_is_inclusive(self):
        period = BreakPeriod(start_date="2024-06-17", end_date="2024-06-17")
        assert period.contains(date(2024, 6, 17))
        assert not period.contains(date(2024, 6, 18))
        assert period.kind is BreakKind.BREAK

    def test_end_before_start(self):
        with pytest.raises(ValidationException, match="must not be before"):
            BreakPeriod(start_date="2024-06-18", end_date="2024-06-17")

    def test_kind_is_validated(self):
        assert BreakPeriod("2024-06-17", "2024-06-20", kind="leave").kind is BreakKind.LEAVE
        with pytest.raises(ValidationException, match="'break' or 'leave'"):
            BreakPeriod("2024-06-17", "2024-06-20", kind="holiday")

    def test_reason_is_stripped(self):
        assert BreakPeriod("2024-06-17", "2024-06-17", reason="  dentist ").reason == "dentist"


class TestProfile:
    def test_requires_teacher_and_zone(self):
        with pytest.raises(ValidationException):
            TeacherAvailabilityProfile(teacher_id="", timezone="America/New_York")
        with pytest.raises(ValidationException):
            TeacherAvailabilityProfile(teacher_id="t", timezone="")

    def test_rejects_wrong_rule_type(self):
        with pytest.raises(ValidationException, match="RecurringSlot"):
            TeacherAvailabilityProfile(
                teacher_id="t",
                timezone="UTC",
                recurring_slots=[BreakPeriod("2024-06-17", "2024-06-17")],
            )

    def test_lists_become_tuples(self):
        profile = TeacherAvailabilityProfile(
            teacher_id="t",
            timezone="UTC",
            recurring_slots=[RecurringSlot(1, "09:00", "10:00")],
        )
        assert isinstance(profile.recurring_slots, tuple)

    def test_default_template_covers_weekdays_only(self):
        template = default_recurring_template()
        assert len(template) == 25
        assert {slot.day_of_week for slot in template} == {1, 2, 3, 4, 5}
        monday = sorted(
            (slot.start_time, slot.end_time) for slot in template if slot.day_of_week == 1
        )
        assert monday[0] == (time(9, 0), time(10, 0))
        assert monday[-1] == (time(16, 0), time(17, 0))
