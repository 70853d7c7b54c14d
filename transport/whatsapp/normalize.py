"""
WhatsApp Input Normalization

PURE CONVERSION - NO MODEL CALLS

Reads the inbound webhook body (JSON or form-encoded) and converts it into
the canonical InboundMessage.
- JSON:  {"Body": "...", "From": "whatsapp:+..."}
- FORM:  Twilio's native webhook fields (Body, From, MessageSid, ...)
"""

import json
from typing import Any

from fastapi import Request
from pydantic import ValidationError

from .schemas import InboundMessage

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Internal field name -> wire field name, for error details
_WIRE_NAMES = {
    "body": "Body",
    "sender_id": "From",
    "message_sid": "MessageSid",
    "profile_name": "ProfileName",
}


class NormalizationError(Exception):
    """Input normalization failed."""

    def __init__(self, message: str, details: list[dict[str, str]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


async def extract_payload(request: Request) -> dict[str, Any]:
    """
    Read the raw request body as a flat dict.

    Form-encoded and multipart bodies go through Starlette's form parser;
    anything else is parsed as JSON. An empty body is treated as {} so the
    caller reports the missing fields.

    Raises:
        NormalizationError: Body is not valid JSON or not a JSON object
    """

    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";")[0].strip().lower()

    if media_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw.strip():
        return {}

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise NormalizationError(
            "Invalid request payload.",
            [{"field": "payload", "message": f"Invalid JSON: {e}"}],
        )

    if not isinstance(payload, dict):
        raise NormalizationError(
            "Invalid request payload.",
            [{"field": "payload", "message": "Expected a JSON object"}],
        )

    return payload


def normalize_message(payload: dict[str, Any]) -> InboundMessage:
    """
    Convert a parsed webhook payload into InboundMessage.

    Args:
        payload: Flat dict from extract_payload (or a test)

    Returns:
        InboundMessage ready for the reply pipeline

    Raises:
        NormalizationError: Missing or invalid Body/From, with one
            {"field", "message"} entry per violated field
    """

    try:
        return InboundMessage.model_validate(payload)
    except ValidationError as e:
        raise NormalizationError("Invalid request payload.", _error_details(e))


def _error_details(error: ValidationError) -> list[dict[str, str]]:
    details = []
    for item in error.errors():
        loc = item.get("loc") or ("payload",)
        field = _WIRE_NAMES.get(str(loc[0]), str(loc[0]))
        message = item.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": field, "message": message})
    return details


def extract_sender_id(payload: dict[str, Any]) -> str:
    """
    Extract the validated sender from a payload.

    Useful for routing/logging without full normalization.
    """
    return normalize_message(payload).sender_id
