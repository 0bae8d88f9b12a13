# backend/tests/unit/tasks/test_notification_tasks.py
"""Tests for outbox delivery and the periodic Celery tasks."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest

from hourgym.models import EventOutbox, EventOutboxStatus
from hourgym.repositories.event_outbox_repository import EventOutboxRepository
from hourgym.services.notification_provider import (
    NotificationProvider,
    NotificationProviderTemporaryError,
)
from hourgym.tasks import notification_tasks, reminder_tasks
from hourgym.tasks.beat_schedule import get_beat_schedule
from hourgym.tasks.notification_tasks import (
    BACKOFF_SECONDS,
    MAX_DELIVERY_ATTEMPTS,
    _next_backoff,
    deliver_outbox_event,
)


@pytest.fixture
def provider():
    return Mock(spec=NotificationProvider)


@pytest.fixture
def event(db):
    row = EventOutboxRepository(db).enqueue(
        "booking.confirmed",
        "bk_1",
        {"space_name": "Mat Room"},
        idempotency_key="booking.confirmed:bk_1",
    )
    db.commit()
    return row


def _reload(db, event_id):
    db.expire_all()
    return db.get(EventOutbox, event_id)


class TestNextBackoff:
    def test_follows_table(self):
        assert [_next_backoff(n) for n in range(1, 6)] == BACKOFF_SECONDS

    def test_clamps_past_the_end(self):
        assert _next_backoff(9) == BACKOFF_SECONDS[-1]
        assert _next_backoff(0) == BACKOFF_SECONDS[0]


class TestDeliverOutboxEvent:
    def test_success_marks_sent(self, db, event, provider):
        result = deliver_outbox_event(db, event.id, provider)

        assert result == event.id
        provider.send.assert_called_once_with(
            event_type="booking.confirmed",
            payload={"space_name": "Mat Room"},
            idempotency_key="booking.confirmed:bk_1",
        )
        stored = _reload(db, event.id)
        assert stored.status == EventOutboxStatus.SENT.value
        assert stored.attempt_count == 1

    def test_temporary_failure_reschedules(self, db, event, provider):
        provider.send.side_effect = NotificationProviderTemporaryError("email: smtp down")
        before = datetime.now(timezone.utc)

        assert deliver_outbox_event(db, event.id, provider) is None

        stored = _reload(db, event.id)
        assert stored.status == EventOutboxStatus.PENDING.value
        assert stored.attempt_count == 1
        assert stored.last_error == "email: smtp down"
        assert stored.next_attempt_at >= before + timedelta(seconds=BACKOFF_SECONDS[0])

    def test_last_attempt_marks_failed(self, db, event, provider):
        event.attempt_count = MAX_DELIVERY_ATTEMPTS - 1
        db.commit()
        provider.send.side_effect = NotificationProviderTemporaryError("still down")

        deliver_outbox_event(db, event.id, provider)

        stored = _reload(db, event.id)
        assert stored.status == EventOutboxStatus.FAILED.value
        assert stored.attempt_count == MAX_DELIVERY_ATTEMPTS

    def test_value_error_is_terminal(self, db, event, provider):
        provider.send.side_effect = ValueError("Unsupported event type")

        deliver_outbox_event(db, event.id, provider)

        assert _reload(db, event.id).status == EventOutboxStatus.FAILED.value

    def test_sent_event_is_skipped(self, db, event, provider):
        deliver_outbox_event(db, event.id, provider)

        assert deliver_outbox_event(db, event.id, provider) is None
        assert provider.send.call_count == 1

    def test_missing_event(self, db, provider):
        assert deliver_outbox_event(db, "missing", provider) is None
        provider.send.assert_not_called()


class TestPeriodicTasks:
    def test_dispatch_pending_schedules_due_events(self, session_factory, event):
        with patch.object(notification_tasks, "SessionLocal", session_factory), patch.object(
            notification_tasks.deliver_event, "apply_async"
        ) as apply_async:
            scheduled = notification_tasks.dispatch_pending()

        assert scheduled == 1
        apply_async.assert_called_once_with((event.id,), queue="notifications")

    def test_queue_due_reminders_task(self, session_factory, make_booking):
        booking = make_booking(datetime.now(timezone.utc) + timedelta(hours=1))

        with patch.object(reminder_tasks, "SessionLocal", session_factory):
            assert reminder_tasks.queue_due_reminders() == 1

        session = session_factory()
        try:
            rows = session.query(EventOutbox).filter_by(event_type="booking.reminder").all()
            assert [row.aggregate_id for row in rows] == [booking.id]
        finally:
            session.close()

    def test_beat_schedule(self):
        schedule = get_beat_schedule()

        assert schedule["dispatch-notification-outbox"]["task"] == "outbox.dispatch_pending"
        assert schedule["queue-booking-reminders"]["task"] == "reminders.queue_due"
