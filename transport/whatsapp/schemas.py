"""
WhatsApp Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the contract between the messaging gateway and the reply pipeline.
"""

import re
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CHANNEL_PREFIX = "whatsapp:"

# whatsapp:+<E.164 digits>
SENDER_ID_RE = re.compile(r"^whatsapp:\+[1-9]\d{1,14}$")


# ============================================================================
# INBOUND MESSAGE (THE CONTRACT)
# ============================================================================

class InboundMessage(BaseModel):
    """
    Validated inbound message.

    JSON bodies and Twilio form posts both end up here. The pipeline never
    knows which format the gateway used.
    """

    body: str = Field(..., alias="Body", description="Message text as received, non-blank")
    sender_id: str = Field(..., alias="From", description="Channel-qualified sender, e.g. whatsapp:+14155550100")
    message_sid: Optional[str] = Field(None, alias="MessageSid", description="Gateway message ID")
    profile_name: Optional[str] = Field(None, alias="ProfileName", description="Sender display name")

    class Config:
        """Pydantic config."""
        frozen = True  # Immutable - transport shouldn't mutate
        populate_by_name = True
        extra = "ignore"  # Twilio posts many more fields

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Body must not be empty")
        return value

    @field_validator("sender_id")
    @classmethod
    def sender_is_whatsapp_address(cls, value: str) -> str:
        value = value.strip()
        if not SENDER_ID_RE.match(value):
            raise ValueError(f"From must look like '{CHANNEL_PREFIX}+<country code><number>'")
        return value


# ============================================================================
# HTTP RESPONSES (OUTPUT)
# ============================================================================

class WebhookAck(BaseModel):
    """Body of a 200 response."""

    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of a 400/500 response."""

    error: str
    details: Optional[Any] = None


# ============================================================================
# OUTBOUND DELIVERY
# ============================================================================

DeliveryStatus = Literal["sent", "failed"]


@dataclass(frozen=True)
class DeliveryResult:
    """
    Outcome of one outbound send.

    Best-effort sends report failures here instead of raising.
    """

    status: DeliveryStatus
    to: str
    message_sid: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "sent"
