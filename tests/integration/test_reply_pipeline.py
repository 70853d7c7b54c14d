"""
Reply Pipeline Integration Tests

Runs ReplyPipeline against the real ContextStore with stub providers.

Verifies:
- Context grows by exactly one user + one assistant message per cycle
- Completion window is capped and ends with the newest user message
- Absorbed completion failures vs surfaced delivery failures
- Concurrent messages from one sender never interleave
"""

import asyncio
import time

import pytest

from agent.memory import ContextStore, LRUEviction
from inference import ModelBackend, ModelRequest, ModelResponse, StubModelBackend
from transport.whatsapp import InboundMessage, StubSender, WhatsAppSenderError


def _message(body: str, sender: str = "whatsapp:+100") -> InboundMessage:
    return InboundMessage(Body=body, From=sender)


class EchoBackend(ModelBackend):
    """Replies with the newest user message; optionally slow."""

    name = "echo"

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    def generate(self, request: ModelRequest) -> ModelResponse:
        if self.delay:
            time.sleep(self.delay)
        return ModelResponse(status="success", output=f"echo: {request.messages[-1]['content']}")


class ExplodingSender(StubSender):
    """Raises a non-sender error on every call."""

    def send(self, to, body):
        self.attempts.append({"to": to, "body": body})
        raise KeyError("unexpected")


class TestSuccessfulCycle:

    @pytest.mark.asyncio
    async def test_single_cycle(self, make_pipeline, store):
        sender = StubSender()
        pipeline = make_pipeline(sender=sender)

        outcome = await pipeline.handle(_message("Hello"))

        assert outcome.ok
        assert outcome.reply.text == "Hi there!"
        assert outcome.delivery.to == "whatsapp:+100"
        context = store.get("whatsapp:+100")
        assert [m.role for m in context.messages] == ["system", "user", "assistant"]
        assert context.messages[1].content == "Hello"
        assert context.messages[2].content == "Hi there!"
        assert sender.sent == [{"to": "whatsapp:+100", "body": "Hi there!"}]

    @pytest.mark.asyncio
    async def test_padded_body_stored_as_received(self, make_pipeline, store):
        backend = StubModelBackend(reply="ok")
        pipeline = make_pipeline(backend=backend)

        outcome = await pipeline.handle(_message("  Hello\n"))

        assert outcome.ok
        assert store.get("whatsapp:+100").messages[1].content == "  Hello\n"
        assert backend.requests[0].messages[-1] == {"role": "user", "content": "  Hello\n"}

    @pytest.mark.asyncio
    async def test_trace_id_uses_message_sid(self, make_pipeline):
        pipeline = make_pipeline()

        outcome = await pipeline.handle(InboundMessage(Body="Hi", From="whatsapp:+100", MessageSid="SM42"))

        assert outcome.trace_id == "SM42"

    @pytest.mark.asyncio
    async def test_window_capped_at_six(self, make_pipeline):
        backend = StubModelBackend(reply="ok")
        pipeline = make_pipeline(backend=backend)

        for i in range(5):
            await pipeline.handle(_message(f"message {i}"))
        await pipeline.handle(_message("newest"))

        last_request = backend.requests[-1]
        assert len(last_request.messages) <= 6
        assert last_request.messages[-1] == {"role": "user", "content": "newest"}
        assert all(len(r.messages) <= 6 for r in backend.requests)

    @pytest.mark.asyncio
    async def test_first_request_includes_system_prompt(self, make_pipeline, store):
        backend = StubModelBackend(reply="ok")
        pipeline = make_pipeline(backend=backend)

        await pipeline.handle(_message("Hello"))

        assert backend.requests[0].messages == [
            {"role": "system", "content": store.system_prompt},
            {"role": "user", "content": "Hello"},
        ]

    @pytest.mark.asyncio
    async def test_senders_have_separate_histories(self, make_pipeline, store):
        pipeline = make_pipeline(backend=EchoBackend())

        await pipeline.handle(_message("from a", "whatsapp:+100"))
        await pipeline.handle(_message("from b", "whatsapp:+200"))

        assert store.get("whatsapp:+100").messages[-1].content == "echo: from a"
        assert store.get("whatsapp:+200").messages[-1].content == "echo: from b"


class TestCompletionFailure:

    @pytest.mark.asyncio
    async def test_fallback_delivered(self, make_pipeline, store):
        sender = StubSender()
        pipeline = make_pipeline(backend=StubModelBackend(fail=True), sender=sender)

        outcome = await pipeline.handle(_message("Hello"))

        assert outcome.ok
        assert outcome.reply.source == "fallback"
        assert sender.sent == [{"to": "whatsapp:+100", "body": pipeline.responder.fallback_reply}]
        assert store.get("whatsapp:+100").messages[-1].content == pipeline.responder.fallback_reply


class TestDeliveryFailure:

    @pytest.mark.asyncio
    async def test_send_failure_triggers_one_apology(self, make_pipeline):
        sender = StubSender(fail_times=1)
        pipeline = make_pipeline(sender=sender)

        outcome = await pipeline.handle(_message("Hello"))

        assert not outcome.ok
        assert outcome.error_type == "send_failed"
        assert outcome.apology.ok
        assert [a["body"] for a in sender.attempts] == ["Hi there!", pipeline.apology_reply]

    @pytest.mark.asyncio
    async def test_apology_failure_is_absorbed(self, make_pipeline):
        sender = StubSender(fail=True)
        pipeline = make_pipeline(sender=sender)

        outcome = await pipeline.handle(_message("Hello"))

        assert not outcome.ok
        assert outcome.apology.status == "failed"
        assert len(sender.attempts) == 2

    @pytest.mark.asyncio
    async def test_unexpected_sender_error(self, make_pipeline):
        sender = ExplodingSender()
        pipeline = make_pipeline(sender=sender)

        outcome = await pipeline.handle(_message("Hello"))

        assert not outcome.ok
        assert outcome.error_type == "unexpected"
        assert outcome.apology.status == "failed"
        assert len(sender.attempts) == 2

    @pytest.mark.asyncio
    async def test_reply_is_kept_in_context_when_send_fails(self, make_pipeline, store):
        pipeline = make_pipeline(sender=StubSender(fail=True))

        await pipeline.handle(_message("Hello"))

        assert [m.role for m in store.get("whatsapp:+100").messages] == ["system", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_failure_before_put_leaves_context_untouched(self, make_pipeline, store, monkeypatch):
        pipeline = make_pipeline()

        def broken_reply(context, trace_id=None):
            raise RuntimeError("responder bug")

        monkeypatch.setattr(pipeline.responder, "reply", broken_reply)

        outcome = await pipeline.handle(_message("Hello"))

        assert outcome.error_type == "unexpected"
        assert [m.role for m in store.get("whatsapp:+100").messages] == ["system"]


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_sender_messages_do_not_interleave(self, make_pipeline):
        store = ContextStore(system_prompt="sys", eviction=LRUEviction(max_entries=10))
        pipeline = make_pipeline(backend=EchoBackend(delay=0.02), context_store=store)

        bodies = [f"message {i}" for i in range(5)]
        outcomes = await asyncio.gather(*(pipeline.handle(_message(b)) for b in bodies))

        assert all(o.ok for o in outcomes)
        messages = store.get("whatsapp:+100").messages
        assert len(messages) == 1 + 2 * len(bodies)
        for user, assistant in zip(messages[1::2], messages[2::2]):
            assert user.role == "user"
            assert assistant.role == "assistant"
            assert assistant.content == f"echo: {user.content}"
        assert sorted(m.content for m in messages[1::2]) == sorted(bodies)
        assert store.active_locks() == 0

    @pytest.mark.asyncio
    async def test_bounded_store_under_many_senders(self, make_pipeline):
        store = ContextStore(system_prompt="sys", eviction=LRUEviction(max_entries=3))
        pipeline = make_pipeline(context_store=store)

        await asyncio.gather(*(pipeline.handle(_message("hi", f"whatsapp:+{100 + i}")) for i in range(10)))

        assert len(store) == 3
