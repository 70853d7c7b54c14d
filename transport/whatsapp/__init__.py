"""WhatsApp Transport Layer - Module Exports"""

from .normalize import (
    NormalizationError,
    extract_payload,
    extract_sender_id,
    normalize_message,
)
from .schemas import (
    CHANNEL_PREFIX,
    DeliveryResult,
    ErrorResponse,
    InboundMessage,
    WebhookAck,
)
from .sender import (
    MessageSender,
    StubSender,
    TwilioSender,
    WhatsAppSenderError,
    whatsapp_address,
)

__all__ = [
    # Schemas
    "CHANNEL_PREFIX",
    "InboundMessage",
    "WebhookAck",
    "ErrorResponse",
    "DeliveryResult",
    # Normalization
    "extract_payload",
    "normalize_message",
    "extract_sender_id",
    "NormalizationError",
    # Sender
    "MessageSender",
    "TwilioSender",
    "StubSender",
    "WhatsAppSenderError",
    "whatsapp_address",
]
