"""
Eviction policies for the conversation context store.

A policy never touches the store itself; it only answers two questions:
is an entry last used at `stamp` expired, and how many entries must go
when the store holds `size` of them. The store evicts least recently
used entries first.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

Clock = Callable[[], float]


class EvictionPolicy(ABC):
    """Abstract retention rule for ContextStore."""

    def __init__(self, clock: Clock = time.monotonic):
        self.clock = clock

    def now(self) -> float:
        return self.clock()

    @abstractmethod
    def is_expired(self, stamp: float) -> bool:
        """True if an entry last used at `stamp` must be dropped."""
        raise NotImplementedError

    @abstractmethod
    def overflow(self, size: int) -> int:
        """Number of least recently used entries to drop at `size`."""
        raise NotImplementedError


class LRUEviction(EvictionPolicy):
    """Keep at most `max_entries` contexts; evict least recently used."""

    def __init__(self, max_entries: int = 1000, clock: Clock = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        super().__init__(clock)
        self.max_entries = max_entries

    def is_expired(self, stamp: float) -> bool:
        return False

    def overflow(self, size: int) -> int:
        return max(size - self.max_entries, 0)

    def __repr__(self) -> str:
        return f"LRUEviction(max_entries={self.max_entries})"


class TTLEviction(EvictionPolicy):
    """
    Drop contexts idle for longer than `ttl_seconds`.

    An optional `max_entries` bound applies LRU eviction on top.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: Optional[int] = None,
        clock: Clock = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        super().__init__(clock)
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries

    def is_expired(self, stamp: float) -> bool:
        return self.now() - stamp > self.ttl_seconds

    def overflow(self, size: int) -> int:
        if self.max_entries is None:
            return 0
        return max(size - self.max_entries, 0)

    def __repr__(self) -> str:
        return f"TTLEviction(ttl_seconds={self.ttl_seconds}, max_entries={self.max_entries})"
