"""
Model boundary layer for reply generation.

This package provides a clean abstraction for completion calls,
allowing the reply pipeline to remain agnostic of the underlying provider.

Supported backends:
- OpenAIModelBackend: OpenAI chat completions (default)
- OllamaModelBackend: Local Ollama inference
- StubModelBackend: Deterministic fake model (CI/tests)

Example usage:
    from inference import StubModelBackend, ModelRequest

    backend = StubModelBackend(reply="Hi there!")
    request = ModelRequest(messages=[{"role": "user", "content": "Hello"}])
    response = backend.generate(request)
"""

from .types import ModelRequest, ModelResponse, ModelStatus, Role
from .base import ModelBackend
from .stub import StubModelBackend
from .ollama import OllamaModelBackend
from .openai_backend import OpenAIModelBackend

__all__ = [
    "ModelRequest",
    "ModelResponse",
    "ModelStatus",
    "Role",
    "ModelBackend",
    "StubModelBackend",
    "OllamaModelBackend",
    "OpenAIModelBackend",
]
