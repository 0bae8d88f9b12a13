# backend/hourgym/models/gym.py
"""
Gym and Space models for HourGym.

A gym is owned by a single user and holds the business settings that apply to
all of its spaces: the local timezone availability is authored in, the
cancellation policy, and the payment account that receives payouts.
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
import ulid

from ..core.constants import DEFAULT_TIMEZONE, MIN_HOURLY_RATE_CENTS
from ..core.enums import CancellationPolicy, SpaceType
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class Gym(Base):
    __tablename__ = "gyms"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    timezone = Column(String(64), nullable=False, default=DEFAULT_TIMEZONE)
    cancellation_policy = Column(
        String(20), nullable=False, default=CancellationPolicy.MODERATE.value
    )
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    stripe_account_id = Column(String(255), nullable=True, unique=True)
    stripe_onboarded = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime, server_default=func.now())

    owner = relationship("User", backref="gyms")
    spaces = relationship("Space", back_populates="gym", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "cancellation_policy IN ('flexible', 'moderate', 'strict')",
            name="ck_gyms_cancellation_policy",
        ),
    )

    def __repr__(self) -> str:
        return f"<Gym {self.id}: {self.name}>"


class Space(Base):
    __tablename__ = "spaces"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    gym_id = Column(String(26), ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    space_type = Column(String(20), nullable=False, default=SpaceType.OTHER.value)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=True)
    hourly_rate = Column(Integer, nullable=False, comment="Minor units (cents)")
    entry_instructions = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, server_default=func.now())

    gym = relationship("Gym", back_populates="spaces")

    __table_args__ = (
        CheckConstraint(f"hourly_rate >= {MIN_HOURLY_RATE_CENTS}", name="ck_spaces_min_rate"),
    )

    @validates("hourly_rate")
    def _validate_hourly_rate(self, _key: str, value: int) -> int:
        if value is None or int(value) < MIN_HOURLY_RATE_CENTS:
            raise ValueError(f"Hourly rate must be at least {MIN_HOURLY_RATE_CENTS} cents")
        return int(value)

    def __repr__(self) -> str:
        return f"<Space {self.id}: {self.name} @ {self.hourly_rate}c/h>"
