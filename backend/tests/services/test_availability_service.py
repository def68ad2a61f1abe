"""Tests for AvailabilityService (profile persistence and bookable slots)."""

from datetime import date, datetime, time, timezone

import pytest

from tutorhub.core.exceptions import (
    NotFoundException,
    UnauthorizedActorException,
    ValidationException,
)
from tutorhub.domain.time_rules import (
    BreakKind,
    BreakPeriod,
    RecurringSlot,
    SpecificDateSlot,
)
from tutorhub.models.availability import TeacherAvailability

TEACHER = "teacher-1"


class TestProfileLoading:
    def test_first_read_creates_default_template(self, availability_service, unit_db):
        profile = availability_service.get_profile(TEACHER)

        assert profile.teacher_id == TEACHER
        assert profile.timezone == "America/New_York"
        assert len(profile.recurring_slots) == 25
        assert profile.specific_date_slots == ()
        assert profile.break_periods == ()
        assert unit_db.get(TeacherAvailability, TEACHER) is not None

    def test_second_read_reuses_profile(self, availability_service, unit_db):
        first = availability_service.get_profile(TEACHER)
        second = availability_service.get_profile(TEACHER)
        assert [s.rule_id for s in first.recurring_slots] == [
            s.rule_id for s in second.recurring_slots
        ]
        assert unit_db.query(TeacherAvailability).count() == 1

    def test_rule_ids_are_exposed(self, availability_service):
        profile = availability_service.get_profile(TEACHER)
        assert all(slot.rule_id for slot in profile.recurring_slots)


class TestBookableSlots:
    def test_default_horizon_skips_weekends(self, availability_service):
        resolved = availability_service.get_bookable_slots(TEACHER)
        # 2024-06-10 (Mon) .. 2024-06-23 (Sun): ten weekdays
        assert len(resolved) == 10
        assert all(day.weekday() < 5 for day in resolved)
        assert all(len(slots) == 5 for slots in resolved.values())

    def test_include_empty_keeps_every_date(self, availability_service):
        resolved = availability_service.get_bookable_slots(
            TEACHER, horizon_days=7, include_empty=True
        )
        assert len(resolved) == 7
        assert resolved[date(2024, 6, 15)] == []

    def test_from_date_in_the_past_is_clamped(self, availability_service):
        resolved = availability_service.get_bookable_slots(
            TEACHER, from_date=date(2024, 6, 1), horizon_days=3
        )
        assert min(resolved) == date(2024, 6, 10)

    def test_today_follows_teacher_zone(self, availability_service):
        """At 02:00 UTC on the 11th it is still the 10th in New York."""
        now = datetime(2024, 6, 11, 2, 0, tzinfo=timezone.utc)
        resolved = availability_service.get_bookable_slots(TEACHER, horizon_days=1, now=now)
        assert list(resolved) == [date(2024, 6, 10)]

    def test_horizon_over_maximum_is_rejected(self, availability_service):
        with pytest.raises(ValidationException, match="90 days"):
            availability_service.get_bookable_slots(TEACHER, horizon_days=91)

    def test_break_blocks_resolution(self, availability_service):
        availability_service.add_break_period(TEACHER, TEACHER, "2024-06-11", "2024-06-12")
        resolved = availability_service.get_bookable_slots(TEACHER, horizon_days=5)
        assert date(2024, 6, 11) not in resolved
        assert date(2024, 6, 12) not in resolved
        assert availability_service.is_date_blocked(TEACHER, "2024-06-12")
        assert not availability_service.is_date_blocked(TEACHER, "2024-06-13")

    def test_slots_for_past_date_are_empty(self, availability_service):
        assert availability_service.get_slots_for_date(TEACHER, date(2024, 6, 7)) == []
        assert len(availability_service.get_slots_for_date(TEACHER, date(2024, 6, 11))) == 5

    def test_preview_ignores_today_cutoff(self, availability_service):
        assert len(availability_service.preview_day(TEACHER, "2024-06-07")) == 5


class TestEditing:
    def test_only_owner_may_edit(self, availability_service):
        with pytest.raises(UnauthorizedActorException):
            availability_service.add_recurring_slot(TEACHER, "student-1", 0, "10:00", "11:00")
        with pytest.raises(UnauthorizedActorException):
            availability_service.set_timezone(TEACHER, "someone-else", "Europe/London")

    def test_add_recurring_slot_shows_up_on_sunday(self, availability_service):
        slot = availability_service.add_recurring_slot(TEACHER, TEACHER, 0, "10:00", "11:00")
        assert slot.rule_id
        slots = availability_service.get_slots_for_date(TEACHER, date(2024, 6, 16))
        assert [(s.start_time, s.end_time) for s in slots] == [(time(10, 0), time(11, 0))]

    def test_invalid_rule_is_rejected_before_writing(self, availability_service):
        with pytest.raises(ValidationException):
            availability_service.add_recurring_slot(TEACHER, TEACHER, 1, "11:00", "10:00")
        assert len(availability_service.get_profile(TEACHER).recurring_slots) == 25

    def test_specific_date_must_not_be_in_the_past(self, availability_service):
        with pytest.raises(ValidationException, match="today or later"):
            availability_service.add_specific_date_slot(
                TEACHER, TEACHER, "2024-06-09", "09:00", "10:00"
            )

    def test_specific_date_adds_to_template(self, availability_service):
        availability_service.add_specific_date_slot(
            TEACHER, TEACHER, "2024-06-11", "18:00", "19:00"
        )
        slots = availability_service.get_slots_for_date(TEACHER, date(2024, 6, 11))
        assert len(slots) == 6
        assert slots[-1].start_time == time(18, 0)

    def test_add_leave(self, availability_service):
        period = availability_service.add_break_period(
            TEACHER, TEACHER, "2024-07-01", "2024-07-05", "summer", BreakKind.LEAVE
        )
        assert period.kind is BreakKind.LEAVE
        assert availability_service.get_profile(TEACHER).break_periods[0].reason == "summer"

    def test_remove_rule(self, availability_service):
        slot = availability_service.add_recurring_slot(TEACHER, TEACHER, 6, "10:00", "11:00")
        availability_service.remove_recurring_slot(TEACHER, TEACHER, slot.rule_id)
        assert len(availability_service.get_profile(TEACHER).recurring_slots) == 25

    def test_remove_unknown_rule(self, availability_service):
        with pytest.raises(NotFoundException) as exc_info:
            availability_service.remove_break_period(TEACHER, TEACHER, "missing")
        assert exc_info.value.code == "RULE_NOT_FOUND"

    def test_remove_rule_from_other_collection_is_not_found(self, availability_service):
        slot = availability_service.add_recurring_slot(TEACHER, TEACHER, 6, "10:00", "11:00")
        with pytest.raises(NotFoundException):
            availability_service.remove_specific_date_slot(TEACHER, TEACHER, slot.rule_id)


class TestReplaceRules:
    def test_replaces_everything(self, availability_service):
        profile = availability_service.replace_rules(
            TEACHER,
            TEACHER,
            [RecurringSlot(1, "09:00", "10:00")],
            [SpecificDateSlot("2024-06-17", "14:00", "15:00")],
            [BreakPeriod("2024-06-17", "2024-06-17")],
        )
        assert len(profile.recurring_slots) == 1
        assert len(profile.specific_date_slots) == 1
        assert len(profile.break_periods) == 1

        resolved = availability_service.get_bookable_slots(
            TEACHER, from_date=date(2024, 6, 17), horizon_days=8, include_empty=True
        )
        assert resolved[date(2024, 6, 17)] == []
        assert [(s.start_time, s.end_time) for s in resolved[date(2024, 6, 24)]] == [
            (time(9, 0), time(10, 0))
        ]

    def test_drops_past_specific_dates(self, availability_service):
        profile = availability_service.replace_rules(
            TEACHER,
            TEACHER,
            [],
            [
                SpecificDateSlot("2024-06-01", "09:00", "10:00"),
                SpecificDateSlot("2024-06-10", "09:00", "10:00"),
            ],
            [],
        )
        assert [s.date for s in profile.specific_date_slots] == [date(2024, 6, 10)]

    def test_can_change_zone_in_same_save(self, availability_service):
        profile = availability_service.replace_rules(
            TEACHER, TEACHER, [], [], [], zone_id="Europe/London"
        )
        assert profile.timezone == "Europe/London"

    def test_unknown_zone_leaves_rules_untouched(self, availability_service):
        with pytest.raises(ValidationException):
            availability_service.replace_rules(
                TEACHER, TEACHER, [], [], [], zone_id="Nowhere/City"
            )
        assert len(availability_service.get_profile(TEACHER).recurring_slots) == 25


class TestTimezone:
    def test_set_timezone(self, availability_service):
        assert availability_service.set_timezone(TEACHER, TEACHER, "Asia/Tokyo") == "Asia/Tokyo"
        assert availability_service.get_profile(TEACHER).timezone == "Asia/Tokyo"

    def test_unknown_zone(self, availability_service):
        with pytest.raises(ValidationException) as exc_info:
            availability_service.set_timezone(TEACHER, TEACHER, "Mars/Base")
        assert exc_info.value.code == "UNKNOWN_TIMEZONE"

    def test_today_moves_with_zone(self, availability_service):
        """16:00 UTC on the 10th is already the 11th in Tokyo."""
        availability_service.set_timezone(TEACHER, TEACHER, "Asia/Tokyo")
        now = datetime(2024, 6, 10, 16, 0, tzinfo=timezone.utc)
        resolved = availability_service.get_bookable_slots(
            TEACHER, horizon_days=1, include_empty=True, now=now
        )
        assert list(resolved) == [date(2024, 6, 11)]
