import requests
from .base import ModelBackend
from .types import ModelRequest, ModelResponse


class OllamaModelBackend(ModelBackend):
    """
    Ollama backend for local model inference.

    Uses /api/chat so the conversation window (system prompt included) is
    passed through unchanged. max_tokens maps to Ollama's num_predict option.
    """

    name = "ollama"

    def __init__(self, model_name: str, base_url: str = "http://localhost:11434"):
        """
        Initialize Ollama backend.

        Args:
            model_name: Name of the model (e.g. "phi3:mini", "llama3")
            base_url:   Base URL of the Ollama service
        """
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")

    def generate(self, request: ModelRequest) -> ModelResponse:
        base_metadata = {
            "backend": self.name,
            "model": self.model_name,
            "trace_id": request.trace_id,
        }

        options = {"num_predict": request.max_tokens}
        if request.temperature is not None:
            options["temperature"] = request.temperature

        payload = {
            "model": self.model_name,
            "messages": request.messages,
            "stream": False,
            "options": options,
        }

        try:
            resp = requests.post(
                f"{self.base_url}/api/chat",
                json=payload,
                timeout=request.timeout_s,
            )
            resp.raise_for_status()
            data = resp.json()

        except requests.Timeout:
            return ModelResponse(
                status="recoverable_error",
                error_type="timeout",
                metadata=base_metadata,
            )

        except Exception as e:
            return ModelResponse(
                status="fatal_error",
                error_type="backend_unavailable",
                metadata={**base_metadata, "error": str(e)},
            )

        output = data.get("message", {}).get("content") or None
        return ModelResponse(status="success", output=output, metadata=base_metadata)
