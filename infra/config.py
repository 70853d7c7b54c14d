"""
Infrastructure configuration system.

Environment-based backend selection and pipeline tuning with sensible defaults.
Credentials come from config.Config; everything else is read here.
"""

import os
from typing import Optional, Literal
from dataclasses import dataclass

from config import Config
from inference import ModelBackend, StubModelBackend, OllamaModelBackend, OpenAIModelBackend
from agent.memory import ContextStore, EvictionPolicy, LRUEviction, TTLEviction, DEFAULT_SYSTEM_PROMPT
from agent.responder import Responder, DEFAULT_FALLBACK_REPLY, DEFAULT_EMPTY_REPLY
from agent.pipeline import ReplyPipeline, DEFAULT_APOLOGY_REPLY
from transport.whatsapp import MessageSender, StubSender, TwilioSender


LLMBackendType = Literal["openai", "ollama", "stub"]
MessagingBackendType = Literal["twilio", "stub"]
EvictionType = Literal["lru", "ttl"]


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip().lower() in ("", "none"):
        return None
    return float(value)


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # LLM
    llm_backend: LLMBackendType
    openai_model: str
    openai_api_key: str
    ollama_model: str
    ollama_base_url: str
    max_tokens: int
    temperature: Optional[float]

    # Messaging
    messaging_backend: MessagingBackendType
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str

    # Conversation context
    context_window: int
    max_history_messages: int
    eviction: EvictionType
    max_entries: int
    ttl_seconds: float

    # Reply texts
    system_prompt: str
    fallback_reply: str
    empty_reply: str
    apology_reply: str

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults:
        - LLM: openai (gpt-4, 150 tokens, temperature 0.7)
        - Messaging: twilio
        - Context: last 6 messages sent, LRU store of 1000 senders
        """
        return cls(
            # LLM Configuration
            llm_backend=os.getenv("LLM_BACKEND", Config.LLM_BACKEND),  # type: ignore
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4"),
            openai_api_key=Config.OPENAI_API_KEY,
            ollama_model=os.getenv("OLLAMA_MODEL", "phi"),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            max_tokens=int(os.getenv("COMPLETION_MAX_TOKENS", "150")),
            temperature=_optional_float(os.getenv("COMPLETION_TEMPERATURE", "0.7")),

            # Messaging Configuration
            messaging_backend=os.getenv("MESSAGING_BACKEND", Config.MESSAGING_BACKEND),  # type: ignore
            twilio_account_sid=Config.TWILIO_ACCOUNT_SID,
            twilio_auth_token=Config.TWILIO_AUTH_TOKEN,
            twilio_phone_number=Config.TWILIO_PHONE_NUMBER,

            # Context Configuration
            context_window=int(os.getenv("CONTEXT_WINDOW", "6")),
            max_history_messages=int(os.getenv("MAX_HISTORY_MESSAGES", "40")),
            eviction=os.getenv("CONTEXT_EVICTION", "lru").lower(),  # type: ignore
            max_entries=int(os.getenv("CONTEXT_MAX_ENTRIES", "1000")),
            ttl_seconds=float(os.getenv("CONTEXT_TTL_SECONDS", "3600")),

            # Reply texts
            system_prompt=os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
            fallback_reply=os.getenv("FALLBACK_REPLY", DEFAULT_FALLBACK_REPLY),
            empty_reply=os.getenv("EMPTY_REPLY", DEFAULT_EMPTY_REPLY),
            apology_reply=os.getenv("APOLOGY_REPLY", DEFAULT_APOLOGY_REPLY),
        )

    def create_llm_backend(self) -> ModelBackend:
        """Create LLM backend instance based on configuration."""
        if self.llm_backend == "ollama":
            return OllamaModelBackend(
                model_name=self.ollama_model,
                base_url=self.ollama_base_url
            )
        elif self.llm_backend == "stub":
            return StubModelBackend()
        else:
            # Default to openai
            return OpenAIModelBackend(
                model_name=self.openai_model,
                api_key=self.openai_api_key,
            )

    def create_sender(self) -> MessageSender:
        """Create messaging backend instance based on configuration."""
        if self.messaging_backend == "stub":
            return StubSender()
        # Default to twilio
        return TwilioSender(
            account_sid=self.twilio_account_sid,
            auth_token=self.twilio_auth_token,
            from_number=self.twilio_phone_number,
        )

    def create_eviction(self) -> EvictionPolicy:
        """Create the context store retention policy."""
        if self.eviction == "ttl":
            return TTLEviction(ttl_seconds=self.ttl_seconds, max_entries=self.max_entries)
        # Default to lru
        return LRUEviction(max_entries=self.max_entries)

    def create_context_store(self) -> ContextStore:
        return ContextStore(
            system_prompt=self.system_prompt,
            eviction=self.create_eviction(),
            max_history_messages=self.max_history_messages,
        )

    def create_responder(self, backend: Optional[ModelBackend] = None) -> Responder:
        return Responder(
            backend=backend or self.create_llm_backend(),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            window_size=self.context_window,
            fallback_reply=self.fallback_reply,
            empty_reply=self.empty_reply,
        )

    def create_pipeline(
        self,
        backend: Optional[ModelBackend] = None,
        sender: Optional[MessageSender] = None,
        store: Optional[ContextStore] = None,
    ) -> ReplyPipeline:
        """Wire a ReplyPipeline; any component may be passed in pre-built."""
        return ReplyPipeline(
            store=store or self.create_context_store(),
            responder=self.create_responder(backend),
            sender=sender or self.create_sender(),
            apology_reply=self.apology_reply,
        )


def get_config() -> InfraConfig:
    """Get global infrastructure configuration."""
    return InfraConfig.from_env()
