"""Celery task that queues pre-start booking reminders."""

from __future__ import annotations

from typing import List

from celery.utils.log import get_task_logger

from ..database import SessionLocal
from ..services.reminder_service import ReminderService
from .celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="reminders.queue_due", max_retries=0, queue="reminders")
def queue_due_reminders() -> int:
    """Write reminder intents for bookings entering the reminder window."""
    session = SessionLocal()
    try:
        queued: List[str] = ReminderService(session).queue_due_reminders()
    finally:
        session.close()
    if queued:
        logger.info("Queued reminders for %s bookings", len(queued))
    return len(queued)
