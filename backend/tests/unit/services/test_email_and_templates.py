# backend/tests/unit/services/test_email_and_templates.py
"""Tests for email rendering and the Resend wrapper."""

from unittest.mock import patch

from jinja2 import UndefinedError
import pytest

from hourgym.core.exceptions import ServiceException
from hourgym.services.email_service import EmailService
from hourgym.services.template_service import TemplateService


def _context():
    return {
        "booking_id": "01J0BOOKING",
        "space_name": "Mat Room",
        "gym_name": "Ironworks Gym",
        "date_label": "Monday, June 17",
        "start_time": "9:00 AM",
        "end_time": "10:00 AM",
        "address": "100 Main St",
        "entry_instructions": None,
        "contact_name": None,
        "contact_phone": None,
        "total_formatted": "$50.00",
        "booking_url": "http://localhost:3000/bookings/01J0BOOKING",
        "recipient_name": "Riley <Renter>",
    }


class TestTemplateService:
    def test_renders_confirmation(self):
        html = TemplateService().render_template(
            "email/booking_confirmed.html", _context(), subject="Booking Confirmed"
        )

        assert "Mat Room" in html
        assert "$50.00" in html
        assert "HourGym" in html
        assert "Entry instructions" not in html

    def test_autoescapes_values(self):
        html = TemplateService().render_template(
            "email/booking_confirmed.html", _context(), subject="Booking Confirmed"
        )

        assert "Riley &lt;Renter&gt;" in html

    def test_missing_variable_is_an_error(self):
        context = _context()
        del context["space_name"]

        with pytest.raises(UndefinedError):
            TemplateService().render_template(
                "email/booking_confirmed.html", context, subject="Booking Confirmed"
            )


class TestEmailService:
    def test_disabled_without_api_key(self):
        service = EmailService()

        assert service.enabled is False
        assert service.send_email("renter@example.test", "Hi", "<p>Hi</p>") is None

    def test_sends_through_resend(self):
        service = EmailService()
        service.enabled = True

        with patch("resend.Emails.send", return_value={"id": "em_123"}) as send:
            response = service.send_email("renter@example.test", "Hi", "<p>Hello <b>there</b></p>")

        assert response == {"id": "em_123"}
        sent = send.call_args.args[0]
        assert sent["to"] == "renter@example.test"
        assert sent["from"] == "HourGym <bookings@hourgym.com>"
        assert sent["text"] == "Hello there"

    def test_provider_error_becomes_service_exception(self):
        service = EmailService()
        service.enabled = True

        with patch("resend.Emails.send", side_effect=RuntimeError("rate limited")):
            with pytest.raises(ServiceException):
                service.send_email("renter@example.test", "Hi", "<p>Hi</p>")
