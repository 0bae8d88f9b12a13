# backend/hourgym/tasks/beat_schedule.py
"""
Celery Beat schedule for HourGym.
"""

from datetime import timedelta
from typing import Any, Dict

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    "dispatch-notification-outbox": {
        "task": "outbox.dispatch_pending",
        "schedule": timedelta(minutes=1),
        "options": {"queue": "notifications"},
    },
    "queue-booking-reminders": {
        "task": "reminders.queue_due",
        "schedule": crontab(minute="*/15"),
        "options": {"queue": "reminders"},
    },
}


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return dict(CELERYBEAT_SCHEDULE)
