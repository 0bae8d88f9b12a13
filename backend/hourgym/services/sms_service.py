"""Service for sending SMS via Twilio."""

from __future__ import annotations

from enum import Enum
import logging
import re
from typing import Any, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from ..core.config import settings

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 1600


class SMSStatus(str, Enum):
    SUCCESS = "success"
    DISABLED = "disabled"
    ERROR = "error"


class SMSDeliveryError(RuntimeError):
    """Raised when Twilio rejects a message."""


def format_phone_number(phone: Optional[str]) -> Optional[str]:
    """
    Normalize to E.164, assuming US numbers when no country code is given.

    Returns None for values that can't be a phone number.
    """
    if not phone:
        return None
    if phone.strip().startswith("+"):
        digits = re.sub(r"\D", "", phone)
        return f"+{digits}" if len(digits) >= 8 else None
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return None


class SMSService:
    """Service for sending SMS via Twilio."""

    def __init__(self, client: Optional[Client] = None) -> None:
        auth_token = settings.twilio_auth_token.get_secret_value()
        self.from_number = settings.twilio_phone_number
        self.enabled = bool(
            settings.sms_enabled
            and settings.twilio_account_sid
            and auth_token
            and self.from_number
        )

        if client is not None:
            self.client: Optional[Client] = client
            self.enabled = True
        elif self.enabled:
            self.client = Client(settings.twilio_account_sid, auth_token)
        else:
            self.client = None
            logger.info("SMS service disabled - Twilio credentials not configured")

    def send_sms(self, to_number: Optional[str], message: str) -> tuple[Optional[dict[str, Any]], SMSStatus]:
        """
        Send an SMS message.

        Raises:
            SMSDeliveryError: Twilio returned an error, so the send may be retried
        """
        if not self.enabled or self.client is None:
            logger.debug("SMS disabled, would send to %s", to_number)
            return None, SMSStatus.DISABLED

        formatted = format_phone_number(to_number)
        if not formatted:
            logger.warning("Invalid phone number format: %s", to_number)
            return None, SMSStatus.ERROR

        if len(message) > MAX_SMS_LENGTH:
            message = message[: MAX_SMS_LENGTH - 3] + "..."

        try:
            twilio_message = self.client.messages.create(
                body=message, to=formatted, from_=self.from_number
            )
        except TwilioRestException as exc:
            logger.error("Twilio error sending SMS to %s: %s", formatted, exc)
            raise SMSDeliveryError(str(exc)) from exc

        logger.info("SMS sent to %s, SID: %s", formatted, twilio_message.sid)
        return {
            "sid": twilio_message.sid,
            "status": getattr(twilio_message, "status", None),
            "to": formatted,
        }, SMSStatus.SUCCESS
