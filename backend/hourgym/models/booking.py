# backend/hourgym/models/booking.py
"""
Booking model for HourGym.

Bookings are created only after payment succeeds, so every stored booking
starts life confirmed. The row carries a pricing snapshot taken at checkout and
the payment references needed for refunds.

On PostgreSQL the table also has a generated ``booking_span`` tstzrange column
and an exclusion constraint (see the initial Alembic migration) that rejects
overlapping confirmed bookings for the same space.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus, CancelledBy
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)

NO_OVERLAP_CONSTRAINT = "bookings_no_overlap_per_space"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    space_id = Column(String(26), ForeignKey("spaces.id"), nullable=False, index=True)
    renter_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    start_at = Column(UTCDateTime, nullable=False, index=True)
    end_at = Column(UTCDateTime, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)

    # Pricing snapshot, minor units
    total_amount = Column(Integer, nullable=False)
    platform_fee = Column(Integer, nullable=False)
    gym_payout = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="usd")

    # Payment references
    stripe_payment_intent_id = Column(String(255), nullable=True, unique=True)
    stripe_checkout_session_id = Column(String(255), nullable=True)
    stripe_refund_id = Column(String(255), nullable=True)
    refund_amount = Column(Integer, nullable=True)

    waiver_accepted_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by = Column(String(20), nullable=True)
    reminder_sent_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    space = relationship("Space", backref="bookings")
    renter = relationship("User", backref="bookings")

    __table_args__ = (
        CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
        CheckConstraint("end_at > start_at", name="ck_bookings_time_order"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('renter', 'gym_owner')",
            name="ck_bookings_cancelled_by",
        ),
        Index("idx_bookings_space_status_start", "space_id", "status", "start_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.CONFIRMED.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: space={self.space_id}, renter={self.renter_id}, "
            f"{self.start_at}-{self.end_at}, status={self.status}>"
        )

    def cancel(
        self,
        cancelled_by: CancelledBy,
        refund_amount: int = 0,
        refund_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Cancel this booking and record the refund outcome."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = now or datetime.now(timezone.utc)
        self.cancelled_by = CancelledBy(cancelled_by).value
        self.refund_amount = refund_amount
        self.stripe_refund_id = refund_id
        logger.info(f"Booking {self.id} cancelled by {self.cancelled_by}")
