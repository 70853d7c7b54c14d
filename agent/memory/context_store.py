"""
In-process conversation context store.

Maps a conversation key (the sender) to its ConversationContext.

Key properties:
- Bounded: an injected EvictionPolicy caps size and/or age
- Per-key serialization: `lock(key)` makes get_or_create -> mutate -> put
  one atomic unit per sender while other senders proceed concurrently
- Process-local: nothing survives a restart
"""

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

from agent.memory.context_types import ConversationContext, utcnow
from agent.memory.eviction import EvictionPolicy, LRUEviction

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant replying to WhatsApp messages. "
    "Keep answers short, friendly and easy to read on a phone."
)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ContextStore:
    """
    Bounded mapping of conversation key -> ConversationContext.

    Entries are kept in least-recently-used order; both get_or_create and
    put count as a use.
    """

    def __init__(
        self,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        eviction: Optional[EvictionPolicy] = None,
        max_history_messages: int = 40,
    ):
        """
        Initialize the store.

        Args:
            system_prompt: Content of the system message seeded into new contexts
            eviction: Retention policy (defaults to LRUEviction(1000))
            max_history_messages: Per-context cap, system message included
        """
        self.system_prompt = system_prompt
        self.eviction = eviction or LRUEviction()
        self.max_history_messages = max_history_messages
        self._entries: "OrderedDict[str, ConversationContext]" = OrderedDict()
        self._stamps: Dict[str, float] = {}
        self._locks: Dict[str, _KeyLock] = {}

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def get_or_create(self, key: str) -> ConversationContext:
        """Return the context for `key`, creating one seeded with the system prompt."""
        self._drop_if_expired(key)

        context = self._entries.get(key)
        if context is None:
            context = ConversationContext.new(key, self.system_prompt)
            self._entries[key] = context
            logger.debug("Created conversation context", extra={"conversation_key": key})

        self._touch(key)
        self._evict()
        return context

    def put(self, key: str, context: ConversationContext) -> None:
        """Store `context` under `key`, replacing whatever was there."""
        dropped = context.trim(self.max_history_messages)
        if dropped:
            logger.debug(
                f"Trimmed {dropped} old messages",
                extra={"conversation_key": key, "dropped": dropped},
            )

        context.updated_at = utcnow()
        self._entries[key] = context
        self._touch(key)
        self._evict()

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        """Hold exclusive access to `key` for the duration of the block."""
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()

        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(key, None)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[ConversationContext]:
        """Return the stored context without creating or touching it."""
        self._drop_if_expired(key)
        return self._entries.get(key)

    def remove(self, key: str) -> bool:
        self._stamps.pop(key, None)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self._stamps.clear()

    def keys(self) -> list[str]:
        """Keys in least-recently-used-first order."""
        self._expire()
        return list(self._entries.keys())

    def active_locks(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        self._expire()
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            self._drop_if_expired(key)
        return key in self._entries

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _touch(self, key: str) -> None:
        self._stamps[key] = self.eviction.now()
        self._entries.move_to_end(key)

    def _drop_if_expired(self, key: str) -> None:
        stamp = self._stamps.get(key)
        if stamp is not None and self.eviction.is_expired(stamp):
            self.remove(key)
            logger.debug("Context expired", extra={"conversation_key": key})

    def _expire(self) -> None:
        # Oldest first: stop at the first entry that is still fresh.
        while self._entries:
            oldest = next(iter(self._entries))
            if not self.eviction.is_expired(self._stamps[oldest]):
                break
            self.remove(oldest)
            logger.debug("Context expired", extra={"conversation_key": oldest})

    def _evict(self) -> None:
        self._expire()
        for _ in range(self.eviction.overflow(len(self._entries))):
            oldest = next(iter(self._entries))
            self.remove(oldest)
            logger.debug("Context evicted", extra={"conversation_key": oldest})

    def __repr__(self) -> str:
        return f"ContextStore(size={len(self)}, eviction={self.eviction!r})"
