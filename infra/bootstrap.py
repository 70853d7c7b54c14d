"""
Infrastructure initialization and bootstrap.

Singleton pattern for creating the reply pipeline and its backends from configuration.
"""

from typing import Optional

from inference import ModelBackend
from agent.memory import ContextStore
from agent.pipeline import ReplyPipeline
from transport.whatsapp import MessageSender

from .config import InfraConfig, get_config


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Singleton pattern - single instance per process, so every request
    shares one ContextStore.
    """

    _instance: Optional["InfraBootstrap"] = None

    def __init__(self, config: Optional[InfraConfig] = None):
        """Initialize bootstrap with configuration."""
        self.config = config or get_config()
        self.llm_backend = self.config.create_llm_backend()
        self.sender = self.config.create_sender()
        self.context_store = self.config.create_context_store()
        self.pipeline = self.config.create_pipeline(
            backend=self.llm_backend,
            sender=self.sender,
            store=self.context_store,
        )

    @classmethod
    def get_instance(cls, config: Optional[InfraConfig] = None) -> "InfraBootstrap":
        """
        Get singleton instance.

        Args:
            config: Optional custom configuration (only used first time)

        Returns:
            Singleton InfraBootstrap instance
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_llm_backend(self) -> ModelBackend:
        """Get LLM backend."""
        return self.llm_backend

    def get_sender(self) -> MessageSender:
        """Get messaging backend."""
        return self.sender

    def get_context_store(self) -> ContextStore:
        """Get the shared conversation context store."""
        return self.context_store

    def get_pipeline(self) -> ReplyPipeline:
        """Get the reply pipeline."""
        return self.pipeline

    def __repr__(self) -> str:
        """String representation showing configured backends."""
        return (
            f"InfraBootstrap(llm={self.config.llm_backend}, "
            f"messaging={self.config.messaging_backend}, "
            f"store={self.context_store!r})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap all infrastructure backends.

    Args:
        config: Optional custom configuration

    Returns:
        InfraBootstrap instance with all backends initialized
    """
    return InfraBootstrap.get_instance(config)
