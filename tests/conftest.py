"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agent.memory import ContextStore, LRUEviction  # noqa: E402
from agent.pipeline import ReplyPipeline  # noqa: E402
from agent.responder import Responder  # noqa: E402
from inference import StubModelBackend  # noqa: E402
from transport.whatsapp import StubSender  # noqa: E402

FALLBACK_REPLY = "Fallback: try again later."
APOLOGY_REPLY = "Apology: something broke."
SYSTEM_PROMPT = "You are a test assistant."


class FakeClock:
    """Manually advanced monotonic clock for eviction tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return ContextStore(system_prompt=SYSTEM_PROMPT, eviction=LRUEviction(max_entries=100))


@pytest.fixture
def backend():
    return StubModelBackend(reply="Hi there!")


@pytest.fixture
def sender():
    return StubSender()


@pytest.fixture
def make_pipeline(store):
    """Build a ReplyPipeline around stub backends; returns the pipeline."""

    def _make(backend=None, sender=None, context_store=None, window_size=6):
        responder = Responder(
            backend=backend or StubModelBackend(reply="Hi there!"),
            max_tokens=150,
            temperature=0.7,
            window_size=window_size,
            fallback_reply=FALLBACK_REPLY,
        )
        return ReplyPipeline(
            store=context_store if context_store is not None else store,
            responder=responder,
            sender=sender or StubSender(),
            apology_reply=APOLOGY_REPLY,
        )

    return _make
