from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(slots=True)
class ChatSession:
    """
    Conversation state for one user, owned and passed in by the caller.

    Keeps at most ``max_messages`` messages.  The system message, when set,
    is always first and never evicted; the oldest other messages go first.
    """

    max_messages: int = 10
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    _messages: list[ChatMessage] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.max_messages < 1:
            raise ValueError(f"max_messages must be >= 1, got {self.max_messages!r}")

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def system_message(self) -> ChatMessage | None:
        if self._messages and self._messages[0].role is Role.SYSTEM:
            return self._messages[0]
        return None

    def set_system_message(self, content: str) -> None:
        message = ChatMessage(Role.SYSTEM, content)
        if self.system_message is not None:
            self._messages[0] = message
        else:
            self._messages.insert(0, message)
        self._evict()

    def add(self, message: ChatMessage) -> None:
        if message.role is Role.SYSTEM:
            self.set_system_message(message.content)
            return
        self._messages.append(message)
        self._evict()

    def add_user(self, content: str) -> None:
        self.add(ChatMessage(Role.USER, content))

    def add_assistant(self, content: str) -> None:
        self.add(ChatMessage(Role.ASSISTANT, content))

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)

    def _evict(self) -> None:
        first_evictable = 1 if self.system_message is not None else 0
        while len(self._messages) > self.max_messages and len(self._messages) > first_evictable:
            del self._messages[first_evictable]


def render_transcript(messages: Iterable[ChatMessage]) -> str:
    """Flatten messages into a single prompt for text-completion providers."""
    blocks = [f"{message.role.value.capitalize()}: {message.content}" for message in messages]
    blocks.append("Assistant:")
    return "\n\n".join(blocks)


__all__ = ["ChatMessage", "ChatSession", "Role", "render_transcript"]
