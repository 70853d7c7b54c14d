"""
Reply generation.

Builds the completion window from a conversation context, calls the model
backend and turns every outcome into a ReplyResult. Completion failures are
absorbed here: the caller always gets text to send.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from inference import ModelBackend, ModelRequest, ModelResponse
from agent.memory import ConversationContext

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_REPLY = "Sorry, I'm having trouble thinking right now. Please try again in a moment."
DEFAULT_EMPTY_REPLY = "I'm here to help!"

ReplySource = Literal["model", "fallback", "empty"]


@dataclass(frozen=True)
class ReplyResult:
    """
    Text to send plus where it came from.

    source:
    - model:    provider output
    - fallback: provider failed; configured fallback reply substituted
    - empty:    provider succeeded but returned no content
    """

    text: str
    source: ReplySource
    error_type: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.source != "model"


class Responder:
    """Turns a conversation context into a reply via a ModelBackend."""

    def __init__(
        self,
        backend: ModelBackend,
        max_tokens: int = 150,
        temperature: Optional[float] = 0.7,
        window_size: int = 6,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
        empty_reply: str = DEFAULT_EMPTY_REPLY,
    ):
        self.backend = backend
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.window_size = window_size
        self.fallback_reply = fallback_reply
        self.empty_reply = empty_reply

    def build_request(self, context: ConversationContext, trace_id: Optional[str] = None) -> ModelRequest:
        """Last `window_size` messages of the context, oldest first."""
        return ModelRequest(
            messages=context.window(self.window_size),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            trace_id=trace_id,
        )

    def reply(self, context: ConversationContext, trace_id: Optional[str] = None) -> ReplyResult:
        """
        Generate the assistant reply for `context`.

        Never raises: provider errors (reported or raised) become a
        fallback ReplyResult and are logged.
        """
        request = self.build_request(context, trace_id)

        try:
            response = self.backend.generate(request)
        except Exception as e:
            logger.error(
                f"Completion backend raised: {e}",
                exc_info=True,
                extra={"conversation_key": context.id, "trace_id": trace_id},
            )
            return ReplyResult(text=self.fallback_reply, source="fallback", error_type="exception")

        return self._from_response(response, context.id, trace_id)

    def _from_response(self, response: ModelResponse, key: str, trace_id: Optional[str]) -> ReplyResult:
        if not response.ok:
            logger.error(
                f"Completion failed ({response.status}/{response.error_type}), using fallback reply",
                extra={
                    "conversation_key": key,
                    "trace_id": trace_id,
                    "error": response.metadata.get("error"),
                },
            )
            return ReplyResult(text=self.fallback_reply, source="fallback", error_type=response.error_type)

        output = (response.output or "").strip()
        if not output:
            logger.warning(
                "Completion returned no content, using generic reply",
                extra={"conversation_key": key, "trace_id": trace_id},
            )
            return ReplyResult(text=self.empty_reply, source="empty")

        return ReplyResult(text=output, source="model")
