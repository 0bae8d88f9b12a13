# backend/hourgym/models/event_outbox.py
"""
Event outbox persistence models.

Notification intents are written here in the same transaction as the booking
change that produced them. Celery workers deliver them later, and
``NotificationDelivery`` records each successful send so redelivery is a no-op.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .types import JSONPayload, UTCDateTime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EventOutboxStatus(str, Enum):
    """Lifecycle states for an outbox event."""

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class EventOutbox(Base):
    """Transactional outbox entry pending delivery."""

    __tablename__ = "event_outbox"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    event_type = Column(String(100), nullable=False, index=True)
    aggregate_id = Column(String(64), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=False)
    payload = Column(JSONPayload, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=EventOutboxStatus.PENDING.value, index=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    next_attempt_at = Column(UTCDateTime, nullable=True, index=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc)
    updated_at = Column(UTCDateTime, nullable=False, default=_now_utc, onupdate=_now_utc)

    __table_args__ = (UniqueConstraint("idempotency_key", name="uq_event_outbox_idempotency_key"),)


class NotificationDelivery(Base):
    """Record of dispatched notifications to enforce idempotency downstream."""

    __tablename__ = "notification_delivery"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    event_type = Column(String(100), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=False)
    payload = Column(JSONPayload, nullable=False, default=dict)
    attempt_count = Column(Integer, nullable=False, default=1)
    delivered_at = Column(UTCDateTime, nullable=False, default=_now_utc)
    created_at = Column(UTCDateTime, nullable=False, default=_now_utc)

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_notification_delivery_idempotency"),
    )

    def touch(self, payload: Dict[str, Any] | None = None) -> None:
        """Update delivery metadata if a duplicate send is attempted."""
        self.attempt_count += 1
        self.delivered_at = _now_utc()
        if payload is not None:
            self.payload = payload
