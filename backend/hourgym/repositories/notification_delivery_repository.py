# backend/hourgym/repositories/notification_delivery_repository.py
"""
Repository for downstream notification delivery tracking.

A row per idempotency key. Re-recording an existing key bumps its attempt
count instead of inserting a duplicate.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, cast

from sqlalchemy import Select, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
import ulid

from ..database import get_dialect_name
from ..models.event_outbox import NotificationDelivery


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDeliveryRepository:
    """Data access helper for notification_delivery rows."""

    def __init__(self, db: Session):
        self.db = db
        self._dialect = get_dialect_name(db, default="postgresql").lower()

    def record_delivery(
        self,
        event_type: str,
        idempotency_key: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> NotificationDelivery:
        """Persist the delivery and return the row reflecting its attempt count."""
        payload = payload or {}
        now = _now_utc()
        values = dict(
            id=str(ulid.ULID()),
            event_type=event_type,
            idempotency_key=idempotency_key,
            payload=payload,
            attempt_count=1,
            delivered_at=now,
            created_at=now,
        )

        insert_fn = pg_insert if self._dialect == "postgresql" else sqlite_insert
        stmt = (
            insert_fn(NotificationDelivery)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
        )
        result = self.db.execute(stmt)
        inserted = bool(getattr(result, "rowcount", 0))
        self.db.flush()

        row = self.get_by_idempotency_key(idempotency_key)
        if row is None:
            raise RuntimeError("Failed to load notification delivery after insert")
        if not inserted:
            row.touch(payload)
            self.db.flush()
        return row

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[NotificationDelivery]:
        stmt: Select[Any] = select(NotificationDelivery).where(
            NotificationDelivery.idempotency_key == idempotency_key
        )
        result = self.db.execute(stmt)
        return cast(Optional[NotificationDelivery], result.scalar_one_or_none())

    def exists(self, idempotency_key: str) -> bool:
        return self.get_by_idempotency_key(idempotency_key) is not None
