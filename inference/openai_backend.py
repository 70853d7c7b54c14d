"""
OpenAI chat-completions backend.

Thin wrapper over the official SDK. Provider exceptions are translated into
typed ModelResponse values so the pipeline can apply its fallback reply.
"""

import logging
from typing import Optional

import openai
from openai import OpenAI

from .base import ModelBackend
from .types import ModelRequest, ModelResponse

logger = logging.getLogger(__name__)


class OpenAIModelBackend(ModelBackend):
    """Completion backend backed by the OpenAI chat completions API."""

    name = "openai"

    def __init__(self, model_name: str = "gpt-4", api_key: Optional[str] = None, client: Optional[OpenAI] = None):
        """
        Initialize OpenAI backend.

        Args:
            model_name: Chat model identifier (e.g. "gpt-4", "gpt-4o-mini")
            api_key:    OpenAI API key; the SDK falls back to OPENAI_API_KEY
            client:     Pre-built client (tests inject a mock here)
        """
        self.model_name = model_name
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> OpenAI:
        # Built lazily so a missing key surfaces on first use, not at import.
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key or None)
        return self._client

    def generate(self, request: ModelRequest) -> ModelResponse:
        base_metadata = {
            "backend": self.name,
            "model": self.model_name,
            "trace_id": request.trace_id,
        }

        kwargs = {
            "model": self.model_name,
            "messages": request.messages,
            "max_tokens": request.max_tokens,
        }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature

        try:
            completion = self.client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            logger.warning(f"OpenAI request timed out: {e}")
            return ModelResponse(
                status="recoverable_error",
                error_type="timeout",
                metadata={**base_metadata, "error": str(e)},
            )
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limit hit: {e}")
            return ModelResponse(
                status="recoverable_error",
                error_type="rate_limited",
                metadata={**base_metadata, "error": str(e)},
            )
        except Exception as e:
            logger.error(f"OpenAI request failed: {e}", exc_info=True)
            return ModelResponse(
                status="fatal_error",
                error_type="backend_unavailable",
                metadata={**base_metadata, "error": str(e)},
            )

        output = None
        if completion.choices:
            output = completion.choices[0].message.content

        return ModelResponse(
            status="success",
            output=output,
            metadata={**base_metadata, "completion_id": getattr(completion, "id", None)},
        )
