"""
Conversation context types.

A context is the ordered role-tagged history for one conversation key.
The first message is always the system prompt, inserted once at creation.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List

from inference.types import Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """Single role-tagged message."""

    role: Role
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ConversationContext:
    """Message history for one sender."""

    id: str                                   # conversation key (sender)
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, key: str, system_prompt: str) -> "ConversationContext":
        return cls(id=key, messages=[ChatMessage(role="system", content=system_prompt)])

    def copy(self) -> "ConversationContext":
        return replace(self, messages=list(self.messages))

    def append(self, role: Role, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def window(self, size: int) -> List[Dict[str, str]]:
        """Last `size` messages, oldest first, as provider-ready dicts."""
        if size <= 0:
            return []
        return [message.as_dict() for message in self.messages[-size:]]

    def trim(self, max_messages: int) -> int:
        """
        Drop the oldest non-system messages until at most `max_messages` remain.

        The system message stays at index 0. Returns the number dropped.
        """
        if max_messages <= 0 or len(self.messages) <= max_messages:
            return 0

        has_system = bool(self.messages) and self.messages[0].role == "system"
        head = self.messages[:1] if has_system else []
        body = self.messages[1:] if has_system else self.messages
        keep = max(max_messages - len(head), 0)

        dropped = len(body) - keep
        self.messages = head + (body[-keep:] if keep else [])
        return dropped
