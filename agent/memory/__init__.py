"""
Memory module exports.

Clean interface for the reply pipeline to import conversation memory components.
"""

from agent.memory.context_types import ChatMessage, ConversationContext
from agent.memory.eviction import EvictionPolicy, LRUEviction, TTLEviction
from agent.memory.context_store import ContextStore, DEFAULT_SYSTEM_PROMPT

__all__ = [
    "ChatMessage",
    "ConversationContext",
    "EvictionPolicy",
    "LRUEviction",
    "TTLEviction",
    "ContextStore",
    "DEFAULT_SYSTEM_PROMPT",
]
