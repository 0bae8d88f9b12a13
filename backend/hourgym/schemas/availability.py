# backend/hourgym/schemas/availability.py
"""Availability entities and request/response schemas."""

from datetime import date, time
from typing import List, Optional

from pydantic import AwareDatetime, Field, model_validator

from .base import EntityModel, StrictModel, StrictRequestModel


class TemplateEntity(EntityModel):
    """Recurring weekly window. Zero or negative length is allowed and yields no slots."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time


class OverrideEntity(EntityModel):
    date: date
    blocked: bool = True
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _window_is_paired(self) -> "OverrideEntity":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("Override window needs both start and end, or neither")
        return self

    @property
    def is_whole_day(self) -> bool:
        return self.blocked and self.start_time is None and self.end_time is None

    @property
    def is_partial(self) -> bool:
        return self.blocked and self.start_time is not None and self.end_time is not None


class TimeSlotResponse(StrictModel):
    start: AwareDatetime
    end: AwareDatetime
    available: bool


class SlotsResponse(StrictModel):
    space_id: str
    date: date
    timezone: str
    slots: List[TimeSlotResponse]


class TemplateCreate(StrictRequestModel):
    day_of_week: int = Field(ge=0, le=6, description="0=Sunday..6=Saturday")
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def _start_before_end(self) -> "TemplateCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TemplateResponse(StrictModel):
    id: str
    space_id: str
    day_of_week: int
    start_time: time
    end_time: time


class OverrideCreate(StrictRequestModel):
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _window_is_valid(self) -> "OverrideCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("Provide both start_time and end_time, or neither for a whole-day block")
        if self.start_time is not None and self.end_time is not None:
            if self.start_time >= self.end_time:
                raise ValueError("start_time must be before end_time")
        return self


class OverrideResponse(StrictModel):
    id: str
    space_id: str
    date: date
    blocked: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None
