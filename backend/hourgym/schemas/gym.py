# backend/hourgym/schemas/gym.py
"""Gym and space request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator
import pytz

from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import CancellationPolicy, SpaceType
from .base import StrictModel, StrictRequestModel


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 2:
        raise ValueError("Name must be at least 2 characters")
    return value


def _known_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        pytz.timezone(value)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class GymCreate(StrictRequestModel):
    name: str = Field(max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    timezone: str = DEFAULT_TIMEZONE
    cancellation_policy: CancellationPolicy = CancellationPolicy.MODERATE
    contact_name: Optional[str] = Field(default=None, max_length=255)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _known_timezone(v)


class GymUpdate(StrictRequestModel):
    """Partial update; only fields present in the body are written."""

    name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    timezone: Optional[str] = None
    cancellation_policy: Optional[CancellationPolicy] = None
    contact_name: Optional[str] = Field(default=None, max_length=255)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=32)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _known_timezone(v)


class SpaceCreate(StrictRequestModel):
    name: str = Field(max_length=255)
    space_type: SpaceType = SpaceType.OTHER
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    hourly_rate: int = Field(gt=0, description="Cents per hour")
    entry_instructions: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v)


class SpaceUpdate(StrictRequestModel):
    name: Optional[str] = Field(default=None, max_length=255)
    space_type: Optional[SpaceType] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    hourly_rate: Optional[int] = Field(default=None, gt=0)
    entry_instructions: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v)


class SpaceResponse(StrictModel):
    id: str
    gym_id: str
    name: str
    space_type: SpaceType
    description: Optional[str] = None
    capacity: Optional[int] = None
    hourly_rate: int
    is_active: bool


class GymResponse(StrictModel):
    id: str
    owner_id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    timezone: str
    cancellation_policy: CancellationPolicy
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    stripe_onboarded: bool
    created_at: Optional[datetime] = None


class GymWithSpacesResponse(GymResponse):
    spaces: List[SpaceResponse]


class SpaceListResponse(StrictModel):
    spaces: List[SpaceResponse]
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)
