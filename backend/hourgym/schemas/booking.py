# backend/hourgym/schemas/booking.py
"""Booking entities and request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, model_validator

from ..core.constants import ERROR_INVALID_TIME_RANGE
from ..core.enums import BookingStatus
from .base import EntityModel, StrictModel, StrictRequestModel


class BookingEntity(EntityModel):
    id: str
    space_id: str
    start_at: AwareDatetime
    end_at: AwareDatetime
    status: BookingStatus


class CheckoutRequest(StrictRequestModel):
    space_id: str
    start_at: AwareDatetime
    end_at: AwareDatetime
    waiver_accepted: bool = False

    @model_validator(mode="after")
    def _end_after_start(self) -> "CheckoutRequest":
        if self.end_at <= self.start_at:
            raise ValueError(ERROR_INVALID_TIME_RANGE)
        return self


class CheckoutResponse(StrictModel):
    checkout_url: str
    session_id: str


class BookingResponse(StrictModel):
    id: str
    space_id: str
    space_name: Optional[str] = None
    gym_name: Optional[str] = None
    renter_id: str
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    total_amount: int
    platform_fee: int
    gym_payout: int
    currency: str
    refund_amount: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)


class CancelBookingResponse(StrictModel):
    booking_id: str
    status: BookingStatus
    refund_amount: int
    refund_id: Optional[str] = None
