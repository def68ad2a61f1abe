"""
Schema bases for the scheduling API.

Every DTO forbids unknown fields. Request bodies also strip surrounding
whitespace from strings so ids and zone names compare exactly.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class StrictModel(BaseModel):
    """Response DTO base; readable from ORM rows and domain values."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class StrictRequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


class TimeWindowRequest(StrictRequestModel):
    """Local wall-clock window on one day; end must be after start."""

    start_time: datetime.time
    end_time: datetime.time

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: datetime.time, info: Any) -> datetime.time:
        start = info.data.get("start_time")
        if start is not None and v <= start:
            raise ValueError("End time must be after start time")
        return v
