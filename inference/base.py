from abc import ABC, abstractmethod
from .types import ModelRequest, ModelResponse


class ModelBackend(ABC):
    """
    Abstract completion boundary.
    The reply pipeline depends ONLY on this interface.

    Implementations never raise for provider failures; they report them
    through ModelResponse.status instead.
    """

    name: str = "abstract"

    @abstractmethod
    def generate(self, request: ModelRequest) -> ModelResponse:
        """Generate a reply for the given role-tagged messages."""
        raise NotImplementedError
