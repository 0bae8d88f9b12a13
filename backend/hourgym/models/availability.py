# backend/hourgym/models/availability.py
"""
Availability models for HourGym.

Classes:
    AvailabilityTemplate: Recurring weekly open window for a space
    AvailabilityOverride: Date-specific block, either the whole day or a window

Template and override times are wall-clock times in the gym's timezone.
Overrides only ever remove availability.
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class AvailabilityTemplate(Base):
    """Weekly open hours. Several templates may share a day of week."""

    __tablename__ = "availability_templates"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    space_id = Column(String(26), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday..6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(UTCDateTime, server_default=func.now())

    space = relationship("Space", backref="availability_templates")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_templates_dow"),
        Index("idx_availability_templates_space_dow", "space_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityTemplate {self.space_id} dow={self.day_of_week} {self.start_time}-{self.end_time}>"


class AvailabilityOverride(Base):
    """Date-specific closure. No start/end means the whole day is blocked."""

    __tablename__ = "availability_overrides"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    space_id = Column(String(26), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    blocked = Column(Boolean, nullable=False, default=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    reason = Column(String(255), nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    space = relationship("Space", backref="availability_overrides")

    __table_args__ = (
        CheckConstraint(
            "(start_time IS NULL) = (end_time IS NULL)",
            name="ck_availability_overrides_window_pair",
        ),
        Index("idx_availability_overrides_space_date", "space_id", "date"),
    )

    @property
    def is_whole_day(self) -> bool:
        return bool(self.blocked) and self.start_time is None and self.end_time is None

    def __repr__(self) -> str:
        window = "all day" if self.is_whole_day else f"{self.start_time}-{self.end_time}"
        return f"<AvailabilityOverride {self.space_id} {self.date} {window}>"
