"""
Conversation transcript models for Notebook Chat.

ChatMessage content is append-only while the message is streaming and
immutable once complete. Messages created without streaming are complete
from the start.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from models.error_models import MessageImmutableError

MessageRole = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    """A message in the conversation transcript.

    Fields cannot be assigned directly; streamed text goes through
    append_content() and completion through complete_streaming().
    """

    id: UUID = Field(default_factory=uuid4)
    role: MessageRole
    content: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_streaming: bool = False

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str, is_streaming: bool = False) -> ChatMessage:
        return cls(role="assistant", content=content, is_streaming=is_streaming)

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role="system", content=content)

    def __setattr__(self, name: str, value: Any) -> None:
        raise MessageImmutableError(f"Message {self.id} field '{name}' is read-only")

    def append_content(self, text: str) -> None:
        """Append streamed text.

        Raises:
            MessageImmutableError: If the message is not streaming
        """
        if not self.is_streaming:
            raise MessageImmutableError(f"Message {self.id} is complete and cannot be modified")
        super().__setattr__("content", self.content + text)

    def complete_streaming(self) -> None:
        """Mark the message as complete. Idempotent."""
        super().__setattr__("is_streaming", False)


class Transcript:
    """Ordered, append-only sequence of chat messages."""

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        return message

    def clear(self) -> None:
        self._messages.clear()

    def history(self) -> tuple[ChatMessage, ...]:
        """Read-only snapshot of the transcript."""
        return tuple(self._messages)

    @property
    def last(self) -> ChatMessage | None:
        return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)


__all__ = ["ChatMessage", "MessageRole", "Transcript"]
