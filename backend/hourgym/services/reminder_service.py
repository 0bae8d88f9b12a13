"""
Pre-start reminders.

Run every 15 minutes. A confirmed booking starting 45 to 75 minutes from now
gets one ``booking.reminder`` intent. The reminder marker on the booking is
set with a conditional update, so overlapping runs queue each reminder once.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class ReminderService(BaseService):
    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        minutes_before: int = settings.reminder_minutes_before,
        window_minutes: int = settings.reminder_window_minutes,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.notification_service = notification_service or NotificationService(db)
        self.minutes_before = minutes_before
        self.window_minutes = window_minutes

    def reminder_window(self, now: datetime) -> tuple[datetime, datetime]:
        center = now + timedelta(minutes=self.minutes_before)
        half = timedelta(minutes=self.window_minutes)
        return center - half, center + half

    @BaseService.measure_operation("queue_due_reminders")
    def queue_due_reminders(self, now: Optional[datetime] = None) -> List[str]:
        """Queue reminders for bookings entering the window. Returns the booking ids queued."""
        now = now or datetime.now(timezone.utc)
        window_start, window_end = self.reminder_window(now)

        queued: List[str] = []
        with self.transaction():
            for booking in self.booking_repository.get_due_for_reminder(window_start, window_end):
                if not self.booking_repository.mark_reminder_sent(booking.id, now):
                    continue
                self.notification_service.booking_reminder(booking)
                queued.append(booking.id)

        if queued:
            self.logger.info("Queued %s booking reminders", len(queued))
        return queued
