# backend/tutorhub/schemas/availability.py
"""
Availability schemas.

Request bodies for the teacher's schedule editor and the response shapes
for both the editor (raw rules) and students (resolved slots).
"""

import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..domain.time_rules import (
    BreakKind,
    BreakPeriod,
    RecurringSlot,
    Slot,
    SpecificDateSlot,
    TeacherAvailabilityProfile,
)
from ._strict_base import StrictModel, StrictRequestModel, TimeWindowRequest

# Type aliases for clarity
DateType = datetime.date
TimeType = datetime.time


class RecurringSlotIn(TimeWindowRequest):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")

    def to_domain(self) -> RecurringSlot:
        return RecurringSlot(
            day_of_week=self.day_of_week, start_time=self.start_time, end_time=self.end_time
        )


class SpecificDateSlotIn(TimeWindowRequest):
    date: DateType

    def to_domain(self) -> SpecificDateSlot:
        return SpecificDateSlot(date=self.date, start_time=self.start_time, end_time=self.end_time)


class BreakPeriodIn(StrictRequestModel):
    start_date: DateType
    end_date: DateType
    reason: str = Field(default="", max_length=500)
    kind: Literal["break", "leave"] = "break"

    @field_validator("end_date")
    @classmethod
    def validate_date_order(cls, v: DateType, info: Any) -> DateType:
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start_date")
            and v < info.data["start_date"]
        ):
            raise ValueError("End date must not be before start date")
        return v

    def to_domain(self) -> BreakPeriod:
        return BreakPeriod(
            start_date=self.start_date,
            end_date=self.end_date,
            reason=self.reason,
            kind=BreakKind(self.kind),
        )


class AvailabilityRulesUpdate(StrictRequestModel):
    """Full editor state saved in one request."""

    timezone: Optional[str] = None
    recurring_slots: List[RecurringSlotIn] = Field(default_factory=list)
    specific_date_slots: List[SpecificDateSlotIn] = Field(default_factory=list)
    break_periods: List[BreakPeriodIn] = Field(default_factory=list)


class RecurringSlotOut(StrictModel):
    id: Optional[str] = None
    day_of_week: int
    start_time: TimeType
    end_time: TimeType


class SpecificDateSlotOut(StrictModel):
    id: Optional[str] = None
    date: DateType
    start_time: TimeType
    end_time: TimeType


class BreakPeriodOut(StrictModel):
    id: Optional[str] = None
    start_date: DateType
    end_date: DateType
    reason: str
    kind: str


class AvailabilityRulesResponse(StrictModel):
    teacher_id: str
    timezone: str
    recurring_slots: List[RecurringSlotOut]
    specific_date_slots: List[SpecificDateSlotOut]
    break_periods: List[BreakPeriodOut]

    @classmethod
    def from_profile(cls, profile: TeacherAvailabilityProfile) -> "AvailabilityRulesResponse":
        return cls(
            teacher_id=profile.teacher_id,
            timezone=profile.timezone,
            recurring_slots=[
                RecurringSlotOut(
                    id=slot.rule_id,
                    day_of_week=slot.day_of_week,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
                for slot in profile.recurring_slots
            ],
            specific_date_slots=[
                SpecificDateSlotOut(
                    id=slot.rule_id,
                    date=slot.date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                )
                for slot in profile.specific_date_slots
            ],
            break_periods=[
                BreakPeriodOut(
                    id=period.rule_id,
                    start_date=period.start_date,
                    end_date=period.end_date,
                    reason=period.reason,
                    kind=period.kind.value,
                )
                for period in profile.break_periods
            ],
        )


class SlotOut(StrictModel):
    id: str
    date: DateType
    start_time: TimeType
    end_time: TimeType
    source: str

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotOut":
        return cls(
            id=slot.id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            source=slot.source.value,
        )


class DayAvailability(StrictModel):
    date: DateType
    slots: List[SlotOut]


class BookableSlotsResponse(StrictModel):
    teacher_id: str
    timezone: str
    days: List[DayAvailability]

    @classmethod
    def build(
        cls, teacher_id: str, zone_id: str, resolved: Dict[DateType, List[Slot]]
    ) -> "BookableSlotsResponse":
        return cls(
            teacher_id=teacher_id,
            timezone=zone_id,
            days=[
                DayAvailability(date=day, slots=[SlotOut.from_slot(slot) for slot in slots])
                for day, slots in resolved.items()
            ],
        )
