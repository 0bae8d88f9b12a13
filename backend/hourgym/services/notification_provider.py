# backend/hourgym/services/notification_provider.py
"""
Notification provider used by the outbox dispatcher.

Turns an outbox event into an email (Resend) and, when the recipient opted in,
an SMS (Twilio). Each channel is recorded in notification_delivery under its
own idempotency key, so a retried event never repeats a send that already
went out.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, Generator, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..database import SessionLocal
from ..repositories.factory import RepositoryFactory
from . import sms_templates
from .email_service import EmailService
from .notification_service import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_OWNER_NOTIFIED,
    BOOKING_REMINDER,
)
from .sms_service import SMSDeliveryError, SMSService, SMSStatus
from .template_service import TemplateService

logger = logging.getLogger(__name__)


class NotificationProviderTemporaryError(RuntimeError):
    """A downstream provider failed in a way worth retrying."""


@dataclass(frozen=True)
class EmailSpec:
    template: str
    subject: str


EMAIL_SPECS: Dict[str, EmailSpec] = {
    BOOKING_CONFIRMED: EmailSpec(
        "email/booking_confirmed.html", "Booking Confirmed: {space_name} at {gym_name}"
    ),
    BOOKING_OWNER_NOTIFIED: EmailSpec("email/booking_owner_notified.html", "New Booking: {space_name}"),
    BOOKING_CANCELLED: EmailSpec(
        "email/booking_cancelled.html", "Booking Cancelled: {space_name} at {gym_name}"
    ),
    BOOKING_REMINDER: EmailSpec(
        "email/booking_reminder.html", "Reminder: Your booking starts in 1 hour - {space_name}"
    ),
}


@contextmanager
def _managed_session(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    """Context manager that yields a session and guarantees cleanup."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@dataclass
class NotificationDispatchResult:
    """Which channels were sent or skipped for one event."""

    idempotency_key: str
    event_type: str
    sent: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class NotificationProvider:
    """
    Delivers booking notifications.

    Usage:
        provider = NotificationProvider()
        provider.send(event_type="booking.confirmed", payload={...}, idempotency_key="...")
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        email_service: Optional[EmailService] = None,
        sms_service: Optional[SMSService] = None,
        template_service: Optional[TemplateService] = None,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self.email_service = email_service or EmailService()
        self.sms_service = sms_service or SMSService()
        self.template_service = template_service or TemplateService()

    def send(
        self,
        event_type: str,
        payload: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> NotificationDispatchResult:
        """
        Send every channel for the event that has not been delivered yet.

        Raises:
            ValueError: Missing idempotency key or unknown event type
            NotificationProviderTemporaryError: A provider call failed
        """
        if not idempotency_key:
            raise ValueError("idempotency_key is required for notification dispatch")
        spec = EMAIL_SPECS.get(event_type)
        if spec is None:
            raise ValueError(f"Unknown notification event type: {event_type}")

        payload = payload or {}
        result = NotificationDispatchResult(idempotency_key=idempotency_key, event_type=event_type)

        self._deliver_channel(
            result, "email", event_type, payload, lambda: self._send_email(spec, payload)
        )

        sms_template = sms_templates.TEMPLATES_BY_EVENT.get(event_type)
        if sms_template is not None and payload.get("recipient_phone"):
            self._deliver_channel(
                result,
                "sms",
                event_type,
                payload,
                lambda: self._send_sms(sms_template, payload),
            )

        logger.info(
            "Notification %s key=%s sent=%s skipped=%s",
            event_type,
            idempotency_key,
            result.sent,
            result.skipped,
        )
        return result

    def _deliver_channel(
        self,
        result: NotificationDispatchResult,
        channel: str,
        event_type: str,
        payload: Dict[str, Any],
        send: Callable[[], bool],
    ) -> None:
        key = f"{result.idempotency_key}:{channel}"
        with _managed_session(self._session_factory) as session:
            repo = RepositoryFactory.create_notification_delivery_repository(session)
            if repo.exists(key):
                logger.debug("Skipping already delivered %s (%s)", channel, key)
                result.skipped.append(channel)
                return

        if not send():
            result.skipped.append(channel)
            return

        with _managed_session(self._session_factory) as session:
            repo = RepositoryFactory.create_notification_delivery_repository(session)
            repo.record_delivery(event_type, key, payload)
        result.sent.append(channel)

    def _send_email(self, spec: EmailSpec, payload: Dict[str, Any]) -> bool:
        recipient = payload.get("recipient_email")
        if not recipient:
            logger.warning("Notification payload has no recipient email")
            return False
        subject = spec.subject.format(**payload)
        html = self.template_service.render_template(spec.template, payload, subject=subject)
        try:
            response = self.email_service.send_email(recipient, subject, html)
        except ServiceException as exc:
            raise NotificationProviderTemporaryError(exc.message) from exc
        return response is not None

    def _send_sms(self, template: sms_templates.SMSTemplate, payload: Dict[str, Any]) -> bool:
        context = dict(payload)
        context["refund_message"] = sms_templates.refund_message(payload)
        context.setdefault("entry_instructions", None)
        context = {k: ("" if v is None else v) for k, v in context.items()}
        message = sms_templates.render_sms(template, **context)
        try:
            _, status = self.sms_service.send_sms(payload.get("recipient_phone"), message)
        except SMSDeliveryError as exc:
            raise NotificationProviderTemporaryError(str(exc)) from exc
        return status is SMSStatus.SUCCESS
