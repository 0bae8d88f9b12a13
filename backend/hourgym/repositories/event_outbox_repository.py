# backend/hourgym/repositories/event_outbox_repository.py
"""
Repository for the booking notification outbox.

Booking and cancellation flows enqueue rows here inside their own write
transaction; the Celery dispatcher reads them back, claims them and records
each delivery outcome.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Optional, cast

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
import ulid

from ..database import get_dialect_name
from ..models.event_outbox import EventOutbox, EventOutboxStatus

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 1000


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EventOutboxRepository:
    """Enqueue, claim and settle outbox rows."""

    def __init__(self, db: Session):
        self.db = db
        self._dialect = get_dialect_name(db, default="postgresql").lower()

    def enqueue(
        self,
        event_type: str,
        aggregate_id: str,
        payload: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
        next_attempt_at: Optional[datetime] = None,
    ) -> EventOutbox:
        """
        Add a PENDING row unless one already holds ``idempotency_key``.

        A duplicate key leaves the stored row untouched (payload, attempts and
        schedule included) and returns it, so replays of the same booking
        change never queue a second notification.
        """
        now = _now_utc()
        due = next_attempt_at or now
        key = idempotency_key or f"{event_type}:{aggregate_id}"
        row_id = str(ulid.ULID())

        insert_fn = pg_insert if self._dialect == "postgresql" else sqlite_insert
        stmt = (
            insert_fn(EventOutbox)
            .values(
                id=row_id,
                event_type=event_type,
                aggregate_id=aggregate_id,
                payload=payload or {},
                idempotency_key=key,
                status=EventOutboxStatus.PENDING.value,
                attempt_count=0,
                next_attempt_at=due,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
        )
        inserted = bool(getattr(self.db.execute(stmt), "rowcount", 0))
        self.db.flush()

        row = self.get_by_idempotency_key(key)
        if row is None:
            raise RuntimeError(f"Outbox row for {key} missing after enqueue")
        if not inserted:
            logger.debug("Outbox key %s already queued as %s", key, row.id)
        return row

    def get_by_idempotency_key(self, key: str) -> Optional[EventOutbox]:
        stmt = select(EventOutbox).where(EventOutbox.idempotency_key == key)
        return cast(Optional[EventOutbox], self.db.execute(stmt).scalar_one_or_none())

    def get_by_id(self, event_id: str, for_update: bool = False) -> Optional[EventOutbox]:
        """Load a row; ``for_update`` claims it on Postgres, skipping rows another worker holds."""
        if not (for_update and self._dialect == "postgresql"):
            return cast(Optional[EventOutbox], self.db.get(EventOutbox, event_id))
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.id == event_id)
            .with_for_update(skip_locked=True)
        )
        return cast(Optional[EventOutbox], self.db.execute(stmt).scalar_one_or_none())

    def fetch_pending(self, limit: int = 200, now: Optional[datetime] = None) -> list[EventOutbox]:
        """PENDING rows whose next attempt is due, oldest schedule first."""
        stmt = (
            select(EventOutbox)
            .where(
                EventOutbox.status == EventOutboxStatus.PENDING.value,
                EventOutbox.next_attempt_at <= (now or _now_utc()),
            )
            .order_by(EventOutbox.next_attempt_at, EventOutbox.id)
            .limit(limit)
        )
        if self._dialect == "postgresql":
            stmt = stmt.with_for_update(skip_locked=True)
        return list(self.db.execute(stmt).scalars().all())

    def _settle(self, event_id: str, **values: Any) -> None:
        values["updated_at"] = _now_utc()
        self.db.execute(
            update(EventOutbox)
            .where(EventOutbox.id == event_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()

    def mark_sent(self, event_id: str, attempt_count: int) -> None:
        self._settle(
            event_id,
            status=EventOutboxStatus.SENT.value,
            attempt_count=attempt_count,
            last_error=None,
        )

    def mark_failed(
        self,
        event_id: str,
        *,
        attempt_count: int,
        backoff_seconds: int,
        error: str | None = None,
        terminal: bool = False,
    ) -> None:
        """Record a failed attempt: reschedule after ``backoff_seconds``, or park as FAILED."""
        if terminal:
            status = EventOutboxStatus.FAILED.value
            next_attempt = _now_utc()
        else:
            status = EventOutboxStatus.PENDING.value
            next_attempt = _now_utc() + timedelta(seconds=max(backoff_seconds, 1))
        self._settle(
            event_id,
            status=status,
            attempt_count=attempt_count,
            next_attempt_at=next_attempt,
            last_error=error[:MAX_ERROR_LENGTH] if error else None,
        )
