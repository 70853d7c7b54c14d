"""
Configuration management for the WhatsApp relay.

Loads environment variables from .env file and provides typed access to configuration.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

logger = logging.getLogger(__name__)


class Config:
    """Configuration class for the WhatsApp relay."""

    # Twilio (messaging gateway)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER", "")

    # OpenAI (completion provider)
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

    # Service
    AGENT_PORT = int(os.getenv("AGENT_PORT", "8000"))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Backend selection (see infra/config.py for tuning)
    LLM_BACKEND = os.getenv("LLM_BACKEND", "openai")
    MESSAGING_BACKEND = os.getenv("MESSAGING_BACKEND", "twilio")

    @classmethod
    def required_keys(cls) -> list[str]:
        """Environment keys the selected backends cannot run without."""
        required = []
        if cls.MESSAGING_BACKEND == "twilio":
            required += ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"]
        if cls.LLM_BACKEND == "openai":
            required.append("OPENAI_API_KEY")
        return required

    @classmethod
    def missing_keys(cls) -> list[str]:
        return [key for key in cls.required_keys() if not getattr(cls, key)]

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        missing = cls.missing_keys()

        if missing:
            logger.warning(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please set them in .env file"
            )
            return False

        return True


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  Twilio Account SID: {'✓ Set' if Config.TWILIO_ACCOUNT_SID else '✗ Missing'}")
    print(f"  Twilio Sender: {Config.TWILIO_PHONE_NUMBER or '✗ Missing'}")
    print(f"  OpenAI API Key: {'✓ Set' if Config.OPENAI_API_KEY else '✗ Missing'}")
    print(f"  Agent Port: {Config.AGENT_PORT}")
    print(f"  LLM Backend: {Config.LLM_BACKEND}")
    print(f"  Messaging Backend: {Config.MESSAGING_BACKEND}")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
