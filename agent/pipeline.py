"""
Reply pipeline: one inbound message -> one delivered reply.

Flow (per conversation key, under the store's per-key lock):
  1. get_or_create context
  2. append user message
  3. generate reply (failures absorbed by Responder)
  4. append assistant message
  5. put context
  6. deliver reply to the sender

Any failure after validation is reported as a failed PipelineOutcome and
followed by exactly one best-effort apology send. Nothing raises past
`handle`.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional
from uuid import uuid4

from agent.memory import ContextStore
from agent.responder import ReplyResult, Responder
from transport.whatsapp.schemas import DeliveryResult, InboundMessage
from transport.whatsapp.sender import MessageSender, WhatsAppSenderError

logger = logging.getLogger(__name__)

DEFAULT_APOLOGY_REPLY = "Sorry, something went wrong while handling your message. Please try again later."

OutcomeStatus = Literal["delivered", "failed"]


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of handling one inbound message."""

    status: OutcomeStatus
    trace_id: str
    reply: Optional[ReplyResult] = None
    delivery: Optional[DeliveryResult] = None
    apology: Optional[DeliveryResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None  # send_failed | unexpected

    @property
    def ok(self) -> bool:
        return self.status == "delivered"


class ReplyPipeline:
    """Orchestrates context, completion and delivery for inbound messages."""

    def __init__(
        self,
        store: ContextStore,
        responder: Responder,
        sender: MessageSender,
        apology_reply: str = DEFAULT_APOLOGY_REPLY,
    ):
        self.store = store
        self.responder = responder
        self.sender = sender
        self.apology_reply = apology_reply

    async def handle(self, message: InboundMessage) -> PipelineOutcome:
        key = message.sender_id
        trace_id = message.message_sid or uuid4().hex
        reply: Optional[ReplyResult] = None

        try:
            async with self.store.lock(key):
                # Work on a copy so a failed cycle leaves the stored context untouched.
                context = self.store.get_or_create(key).copy()
                context.append("user", message.body)

                reply = await _run_blocking(self.responder.reply, context, trace_id)
                context.append("assistant", reply.text)
                self.store.put(key, context)

                delivery = await _run_blocking(self.sender.send, key, reply.text)

        except WhatsAppSenderError as e:
            logger.error(
                f"Failed to deliver reply: {e}",
                extra={"conversation_key": key, "trace_id": trace_id},
            )
            apology = await self._send_apology(key, trace_id)
            return PipelineOutcome(
                status="failed",
                trace_id=trace_id,
                reply=reply,
                apology=apology,
                error=str(e),
                error_type="send_failed",
            )

        except Exception as e:
            logger.error(
                f"Unexpected error handling message: {e}",
                exc_info=True,
                extra={"conversation_key": key, "trace_id": trace_id},
            )
            apology = await self._send_apology(key, trace_id)
            return PipelineOutcome(
                status="failed",
                trace_id=trace_id,
                reply=reply,
                apology=apology,
                error=str(e),
                error_type="unexpected",
            )

        logger.info(
            "Reply delivered",
            extra={
                "conversation_key": key,
                "trace_id": trace_id,
                "reply_source": reply.source,
                "message_sid": delivery.message_sid,
            },
        )
        return PipelineOutcome(status="delivered", trace_id=trace_id, reply=reply, delivery=delivery)

    async def _send_apology(self, key: str, trace_id: str) -> DeliveryResult:
        """Single best-effort apology; failures are logged and returned."""
        try:
            result = await _run_blocking(self.sender.send_best_effort, key, self.apology_reply)
        except Exception as e:
            logger.error(
                f"Apology send raised: {e}",
                exc_info=True,
                extra={"conversation_key": key, "trace_id": trace_id},
            )
            return DeliveryResult(status="failed", to=key, error=str(e))

        if not result.ok:
            logger.warning(
                "Apology could not be delivered",
                extra={"conversation_key": key, "trace_id": trace_id, "error": result.error},
            )
        return result


async def _run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    # SDK clients are synchronous; keep them off the event loop.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))
