"""
WhatsApp Response Sender

Sends reply text back through the messaging gateway.
No formatting intelligence. No retries.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from .schemas import CHANNEL_PREFIX, DeliveryResult

logger = logging.getLogger(__name__)


class WhatsAppSenderError(Exception):
    """Failed to send a message through the gateway."""
    pass


def whatsapp_address(number: str) -> str:
    """Prefix a bare phone number with the WhatsApp channel."""
    number = number.strip()
    if number.startswith(CHANNEL_PREFIX):
        return number
    return f"{CHANNEL_PREFIX}{number}"


class MessageSender(ABC):
    """
    Abstract messaging boundary.

    `send` raises WhatsAppSenderError; `send_best_effort` never raises and
    reports the outcome as a DeliveryResult.
    """

    name: str = "abstract"

    @abstractmethod
    def send(self, to: str, body: str) -> DeliveryResult:
        """
        Deliver `body` to `to`.

        Raises:
            WhatsAppSenderError: If the gateway rejects or cannot be reached
        """
        raise NotImplementedError

    def send_best_effort(self, to: str, body: str) -> DeliveryResult:
        """Deliver `body` to `to`; failures are logged and returned, not raised."""
        try:
            return self.send(to, body)
        except WhatsAppSenderError as e:
            logger.error(
                f"Best-effort send failed: {e}",
                extra={"to": to, "backend": self.name},
            )
            return DeliveryResult(status="failed", to=to, error=str(e))


class TwilioSender(MessageSender):
    """Sends WhatsApp messages through the Twilio REST API."""

    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: Optional[Client] = None,
    ):
        """
        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Sender number, bare or whatsapp:-prefixed
            client: Pre-built client (tests inject a mock here)
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_address = whatsapp_address(from_number) if from_number else ""
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self.account_sid or not self.auth_token:
                raise WhatsAppSenderError("TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN not configured")
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def send(self, to: str, body: str) -> DeliveryResult:
        if not self.from_address:
            raise WhatsAppSenderError("TWILIO_PHONE_NUMBER not configured")

        try:
            message = self.client.messages.create(
                from_=self.from_address,
                to=to,
                body=body,
            )
        except TwilioRestException as e:
            logger.error(
                f"Twilio API error: {e.status} - {e.msg}",
                extra={"to": to, "status_code": e.status, "twilio_code": e.code},
            )
            raise WhatsAppSenderError(f"Twilio API returned {e.status}: {e.msg}")
        except WhatsAppSenderError:
            raise
        except Exception as e:
            logger.error(
                f"Unexpected error sending message: {e}",
                exc_info=True,
                extra={"to": to},
            )
            raise WhatsAppSenderError(f"Unexpected error: {e}")

        sid = getattr(message, "sid", None)
        logger.info(f"Message sent to {to}", extra={"to": to, "message_sid": sid})
        return DeliveryResult(status="sent", to=to, message_sid=sid)


class StubSender(MessageSender):
    """
    Recording sender for tests and local runs.

    `fail=True` fails every send; `fail_times=n` fails the next n sends.
    Every attempt (failed or not) is recorded in `attempts`.
    """

    name = "stub"

    def __init__(self, fail: bool = False, fail_times: int = 0):
        self.fail = fail
        self.fail_times = fail_times
        self.attempts: list[dict[str, str]] = []
        self.sent: list[dict[str, str]] = []

    def send(self, to: str, body: str) -> DeliveryResult:
        attempt = {"to": to, "body": body}
        self.attempts.append(attempt)

        if self.fail or self.fail_times > 0:
            if self.fail_times > 0:
                self.fail_times -= 1
            raise WhatsAppSenderError("Stub sender configured to fail")

        self.sent.append(attempt)
        return DeliveryResult(status="sent", to=to, message_sid=f"SM{len(self.sent):032d}")
