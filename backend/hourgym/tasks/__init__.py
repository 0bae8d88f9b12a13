# backend/hourgym/tasks/__init__.py
"""
Celery tasks package for HourGym.

Importing the package registers every task with the Celery app.
"""

from .celery_app import BaseTask, celery_app
from .notification_tasks import deliver_event, dispatch_pending
from .reminder_tasks import queue_due_reminders

__all__ = [
    "BaseTask",
    "celery_app",
    "deliver_event",
    "dispatch_pending",
    "queue_due_reminders",
]
