# backend/hourgym/models/user.py
"""User model. Accounts are created by the external auth provider; this is the profile."""

import logging

from sqlalchemy import Boolean, Column, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import UserRole
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.RENTER.value)
    sms_opt_in = Column(Boolean, nullable=False, default=False)
    stripe_customer_id = Column(String(255), nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())

    @property
    def is_gym_owner(self) -> bool:
        return self.role == UserRole.GYM_OWNER.value

    @property
    def can_receive_sms(self) -> bool:
        return bool(self.sms_opt_in and self.phone)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
