# backend/tests/unit/services/test_sms_service.py
"""Tests for SMS formatting, templates and the Twilio wrapper."""

from unittest.mock import MagicMock

import pytest
from twilio.base.exceptions import TwilioRestException

from hourgym.services import sms_templates
from hourgym.services.sms_service import (
    MAX_SMS_LENGTH,
    SMSDeliveryError,
    SMSService,
    SMSStatus,
    format_phone_number,
)


class TestFormatPhoneNumber:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("(720) 555-0199", "+17205550199"),
            ("720.555.0199", "+17205550199"),
            ("1-720-555-0199", "+17205550199"),
            ("+44 20 7946 0958", "+442079460958"),
        ],
    )
    def test_normalizes_to_e164(self, raw, expected):
        assert format_phone_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "555-0199", "not a number"])
    def test_invalid_numbers(self, raw):
        assert format_phone_number(raw) is None


class TestSMSTemplates:
    def test_render_confirmed(self):
        message = sms_templates.render_sms(
            sms_templates.BOOKING_CONFIRMED,
            space_name="Mat Room",
            gym_name="Ironworks Gym",
            date_label="Monday, June 17",
            start_time="9:00 AM",
            end_time="10:00 AM",
            address="100 Main St",
        )

        assert message == (
            "HourGym: Your booking is confirmed! Mat Room at Ironworks Gym on Monday, June 17, "
            "9:00 AM-10:00 AM. Address: 100 Main St"
        )

    def test_missing_variable_raises_value_error(self):
        with pytest.raises(ValueError, match="space_name"):
            sms_templates.render_sms(sms_templates.BOOKING_CONFIRMED, gym_name="Ironworks Gym")

    def test_refund_message(self):
        assert sms_templates.refund_message({"refund_amount": 5000, "refund_formatted": "$50.00"}) == (
            "A refund of $50.00 will be processed in 5-10 business days."
        )
        assert sms_templates.refund_message({"refund_amount": 0}) == (
            "No refund was applied based on the cancellation policy."
        )

    def test_owner_notice_has_no_sms_template(self):
        assert "booking.owner_notified" not in sms_templates.TEMPLATES_BY_EVENT


class TestSMSService:
    def test_disabled_without_credentials(self):
        service = SMSService()

        payload, status = service.send_sms("+17205550199", "hello")

        assert payload is None
        assert status is SMSStatus.DISABLED

    def test_sends_with_injected_client(self):
        client = MagicMock()
        client.messages.create.return_value = MagicMock(sid="SM123", status="queued")
        service = SMSService(client=client)

        payload, status = service.send_sms("(720) 555-0199", "hello")

        assert status is SMSStatus.SUCCESS
        assert payload["sid"] == "SM123"
        assert client.messages.create.call_args.kwargs["to"] == "+17205550199"

    def test_invalid_number_is_error(self):
        client = MagicMock()
        service = SMSService(client=client)

        payload, status = service.send_sms("123", "hello")

        assert status is SMSStatus.ERROR
        client.messages.create.assert_not_called()

    def test_long_message_truncated(self):
        client = MagicMock()
        client.messages.create.return_value = MagicMock(sid="SM123", status="queued")
        service = SMSService(client=client)

        service.send_sms("+17205550199", "x" * 2000)

        body = client.messages.create.call_args.kwargs["body"]
        assert len(body) == MAX_SMS_LENGTH
        assert body.endswith("...")

    def test_twilio_error_raises_delivery_error(self):
        client = MagicMock()
        client.messages.create.side_effect = TwilioRestException(500, "https://api.twilio.com", "boom")
        service = SMSService(client=client)

        with pytest.raises(SMSDeliveryError):
            service.send_sms("+17205550199", "hello")
