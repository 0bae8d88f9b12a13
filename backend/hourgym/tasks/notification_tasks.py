# backend/hourgym/tasks/notification_tasks.py
"""
Celery tasks for dispatching notification outbox events.

Implements a two-step workflow:
1. `outbox.dispatch_pending` periodically enqueues delivery tasks.
2. `outbox.deliver_event` performs delivery, recording failures with backoff.

A failed event goes back to PENDING with ``next_attempt_at`` pushed out by
the backoff table; the next dispatch run picks it up again. After
MAX_DELIVERY_ATTEMPTS it is marked FAILED and left for inspection.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, cast

from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..models.event_outbox import EventOutboxStatus
from ..repositories.event_outbox_repository import EventOutboxRepository
from ..services.notification_provider import NotificationProvider
from .celery_app import celery_app

logger = get_task_logger(__name__)

MAX_DELIVERY_ATTEMPTS = 5
BACKOFF_SECONDS = [30, 120, 600, 1800, 7200]
DISPATCH_BATCH_SIZE = 200


def _next_backoff(attempt_number: int) -> int:
    """Return backoff delay for the given attempt (1-indexed)."""
    index = max(0, min(attempt_number - 1, len(BACKOFF_SECONDS) - 1))
    return BACKOFF_SECONDS[index]


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Provide transactional scope for use in tasks."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def deliver_outbox_event(
    session: Session, event_id: str, provider: NotificationProvider
) -> Optional[str]:
    """
    Deliver one outbox event and record the outcome on its row.

    Provider failures are recorded, never raised: the row is rescheduled with
    backoff, or marked FAILED once the attempts are used up. Returns the event
    id when delivered.
    """
    repo = EventOutboxRepository(session)
    event = repo.get_by_id(event_id, for_update=True)
    if event is None:
        logger.warning("Outbox event %s missing or locked; skipping", event_id)
        return None
    if event.status != EventOutboxStatus.PENDING.value:
        logger.info("Outbox event %s already %s; skipping", event_id, event.status)
        return None

    attempt_number = event.attempt_count + 1
    try:
        provider.send(
            event_type=event.event_type,
            payload=event.payload,
            idempotency_key=event.idempotency_key,
        )
    except Exception as exc:
        # ValueError means the event itself is bad; retrying will not help
        terminal = attempt_number >= MAX_DELIVERY_ATTEMPTS or isinstance(exc, ValueError)
        backoff = _next_backoff(attempt_number)
        repo.mark_failed(
            event.id,
            attempt_count=attempt_number,
            backoff_seconds=backoff,
            error=str(exc),
            terminal=terminal,
        )
        session.commit()
        if terminal:
            logger.error(
                "Outbox event %s type=%s failed permanently after %s attempts: %s",
                event.id,
                event.event_type,
                attempt_number,
                exc,
            )
        else:
            logger.warning(
                "Outbox event %s type=%s attempt=%s failed; retrying in %ss: %s",
                event.id,
                event.event_type,
                attempt_number,
                backoff,
                exc,
            )
        return None

    repo.mark_sent(event.id, attempt_number)
    session.commit()
    logger.info(
        "Delivered outbox event %s type=%s attempts=%s",
        event.id,
        event.event_type,
        attempt_number,
    )
    return cast(str, event.id)


@celery_app.task(name="outbox.dispatch_pending", max_retries=0, queue="notifications")
def dispatch_pending() -> int:
    """
    Fetch pending outbox events and enqueue delivery tasks.

    Returns the number of events scheduled.
    """
    with _session_scope() as session:
        repo = EventOutboxRepository(session)
        pending = repo.fetch_pending(limit=DISPATCH_BATCH_SIZE)
        for event in pending:
            deliver_event.apply_async((event.id,), queue="notifications")
        scheduled: int = len(pending)
        if scheduled:
            logger.info("Scheduled %s outbox events for delivery", scheduled)
        return scheduled


@celery_app.task(name="outbox.deliver_event", max_retries=0, queue="notifications")
def deliver_event(event_id: str) -> Optional[str]:
    """Deliver a single outbox event."""
    session = SessionLocal()
    try:
        return deliver_outbox_event(session, event_id, NotificationProvider())
    finally:
        session.close()
