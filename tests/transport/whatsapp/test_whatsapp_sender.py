"""
WhatsApp Sender Tests

Twilio client is mocked; no network calls.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from twilio.base.exceptions import TwilioRestException

from transport.whatsapp.schemas import DeliveryResult
from transport.whatsapp.sender import (
    StubSender,
    TwilioSender,
    WhatsAppSenderError,
    whatsapp_address,
)


def _twilio(client=None, from_number="+14155238886"):
    return TwilioSender(
        account_sid="AC123",
        auth_token="token",
        from_number=from_number,
        client=client or MagicMock(),
    )


class TestWhatsAppAddress:

    def test_adds_prefix(self):
        assert whatsapp_address("+14155238886") == "whatsapp:+14155238886"

    def test_keeps_existing_prefix(self):
        assert whatsapp_address("whatsapp:+14155238886") == "whatsapp:+14155238886"


class TestTwilioSender:

    def test_send_uses_configured_sender_and_destination(self):
        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(sid="SM123")
        sender = _twilio(client)

        result = sender.send("whatsapp:+100", "Hi there!")

        client.messages.create.assert_called_once_with(
            from_="whatsapp:+14155238886",
            to="whatsapp:+100",
            body="Hi there!",
        )
        assert result == DeliveryResult(status="sent", to="whatsapp:+100", message_sid="SM123")

    def test_twilio_error_raises_sender_error(self):
        client = MagicMock()
        client.messages.create.side_effect = TwilioRestException(
            status=400, uri="/Messages", msg="Invalid 'To' number", code=21211
        )

        with pytest.raises(WhatsAppSenderError) as exc_info:
            _twilio(client).send("whatsapp:+100", "Hi")

        assert "400" in str(exc_info.value)

    def test_unexpected_error_raises_sender_error(self):
        client = MagicMock()
        client.messages.create.side_effect = ConnectionError("network down")

        with pytest.raises(WhatsAppSenderError):
            _twilio(client).send("whatsapp:+100", "Hi")

    def test_missing_sender_number(self):
        sender = _twilio(from_number="")

        with pytest.raises(WhatsAppSenderError):
            sender.send("whatsapp:+100", "Hi")

    def test_missing_credentials(self):
        sender = TwilioSender(account_sid="", auth_token="", from_number="+1415")

        with pytest.raises(WhatsAppSenderError):
            sender.send("whatsapp:+100", "Hi")

    def test_best_effort_never_raises(self):
        client = MagicMock()
        client.messages.create.side_effect = ConnectionError("network down")

        result = _twilio(client).send_best_effort("whatsapp:+100", "Sorry")

        assert result.status == "failed"
        assert not result.ok
        assert result.to == "whatsapp:+100"
        assert result.error


class TestStubSender:

    def test_records_sent_messages(self):
        sender = StubSender()

        result = sender.send("whatsapp:+100", "Hi")

        assert result.ok
        assert sender.sent == [{"to": "whatsapp:+100", "body": "Hi"}]

    def test_fail_times(self):
        sender = StubSender(fail_times=1)

        with pytest.raises(WhatsAppSenderError):
            sender.send("whatsapp:+100", "first")
        sender.send("whatsapp:+100", "second")

        assert len(sender.attempts) == 2
        assert sender.sent == [{"to": "whatsapp:+100", "body": "second"}]

    def test_always_fail(self):
        sender = StubSender(fail=True)

        assert not sender.send_best_effort("whatsapp:+100", "x").ok
        assert not sender.send_best_effort("whatsapp:+100", "y").ok
        assert sender.sent == []
