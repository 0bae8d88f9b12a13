# backend/hourgym/services/email_service.py
"""
Email Service for HourGym

Sends transactional email through the Resend API. Failures surface as
``ServiceException`` so the outbox worker can schedule a retry.
"""

import logging
import re
from typing import Any, Dict, Optional

import resend

from ..core.config import settings
from ..core.exceptions import ServiceException

logger = logging.getLogger(__name__)


class EmailService:
    """Thin wrapper over ``resend.Emails.send``."""

    def __init__(self) -> None:
        api_key = settings.resend_api_key.get_secret_value()
        self.enabled = bool(api_key)
        if self.enabled:
            resend.api_key = api_key
        else:
            logger.info("Email service disabled - RESEND_API_KEY not configured")
        self.sender = f"{settings.email_from_name} <{settings.email_from_address}>"

    @staticmethod
    def _html_to_text(html_content: str) -> str:
        """Plain-text alternative for deliverability."""
        text = re.sub(r"<[^>]+>", "", html_content)
        return re.sub(r"\s+", " ", text).strip()

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send a single email. Returns the Resend response, or None when email is disabled.

        Raises:
            ServiceException: If the provider rejects the send
        """
        if not self.enabled:
            logger.debug("Email disabled, would send %r to %s", subject, to_email)
            return None

        email_data = {
            "from": self.sender,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content or self._html_to_text(html_content),
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise ServiceException(f"Email sending failed: {str(e)}") from e

        logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response) if response else {}
