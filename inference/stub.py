from typing import Optional

from .base import ModelBackend
from .types import ModelRequest, ModelResponse


class StubModelBackend(ModelBackend):
    """
    Deterministic fake model for testing and CI.

    Returns a fixed reply (or fails on demand) and records every request it
    receives so tests can inspect the exact window sent to the provider.
    """

    name = "stub"

    def __init__(self, reply: Optional[str] = "This is a stubbed response.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.requests: list[ModelRequest] = []

    def generate(self, request: ModelRequest) -> ModelResponse:
        """
        Generate a deterministic response.

        Args:
            request: ModelRequest with messages and sampling parameters

        Returns:
            ModelResponse with the configured reply, or a recoverable error
            when the stub was built with fail=True
        """
        self.requests.append(request)

        if self.fail:
            return ModelResponse(
                status="recoverable_error",
                error_type="backend_unavailable",
                metadata={"backend": self.name, "trace_id": request.trace_id},
            )

        return ModelResponse(
            status="success",
            output=self.reply,
            metadata={"backend": self.name, "trace_id": request.trace_id},
        )
