"""
Event models for Notebook Chat.

Two tagged unions live here:
- SessionEvent: what a conversational engine session emits
- StreamingUpdate: the normalized updates the orchestrator hands to callers

Plus ChatResponse, the result of one orchestrated request.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from core.constants import (
    EVENT_ERROR,
    EVENT_IDLE,
    EVENT_MESSAGE,
    EVENT_REASONING_DELTA,
    EVENT_TEXT_DELTA,
    EVENT_TOOL_COMPLETE,
    EVENT_TOOL_START,
    MSG_CANCELLED,
    MSG_ERROR_PREFIX,
    MSG_TIMED_OUT,
)
from models.error_models import ErrorCode

# ============================================================================
# Engine session events
# ============================================================================


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextDeltaEvent(_FrozenModel):
    """Incremental assistant text."""

    type: Literal["text_delta"] = EVENT_TEXT_DELTA
    delta_content: str


class MessageEvent(_FrozenModel):
    """Complete assistant message (may follow deltas with the same text)."""

    type: Literal["message"] = EVENT_MESSAGE
    content: str


class ReasoningDeltaEvent(_FrozenModel):
    """Incremental reasoning text."""

    type: Literal["reasoning_delta"] = EVENT_REASONING_DELTA
    delta_content: str


class ToolStartEvent(_FrozenModel):
    """A tool began executing."""

    type: Literal["tool_start"] = EVENT_TOOL_START
    tool_name: str
    tool_call_id: str | None = None
    arguments: str | None = None


class ToolCompleteEvent(_FrozenModel):
    """A tool finished executing.

    tool_name and tool_input may be omitted when the engine only reports the
    call id; the orchestrator resolves them from the matching start event.
    """

    type: Literal["tool_complete"] = EVENT_TOOL_COMPLETE
    tool_call_id: str | None = None
    tool_name: str | None = None
    tool_input: str | None = None
    result: str | None = None
    success: bool = True


class IdleEvent(_FrozenModel):
    """Session finished processing the prompt."""

    type: Literal["idle"] = EVENT_IDLE


class ErrorEvent(_FrozenModel):
    """Session reported an error."""

    type: Literal["error"] = EVENT_ERROR
    message: str


SessionEvent = Annotated[
    TextDeltaEvent
    | MessageEvent
    | ReasoningDeltaEvent
    | ToolStartEvent
    | ToolCompleteEvent
    | IdleEvent
    | ErrorEvent,
    Field(discriminator="type"),
]

#: Parses engine events delivered as plain dicts
session_event_adapter: TypeAdapter[SessionEvent] = TypeAdapter(SessionEvent)

# ============================================================================
# Normalized streaming updates
# ============================================================================


class TextDelta(_FrozenModel):
    """Incremental text content from the assistant."""

    type: Literal["text_delta"] = "text_delta"
    content: str


class Thinking(_FrozenModel):
    """The assistant is thinking; content carries reasoning text when available."""

    type: Literal["thinking"] = "thinking"
    content: str | None = None


class ToolStarted(_FrozenModel):
    """A tool has started executing."""

    type: Literal["tool_started"] = "tool_started"
    tool_name: str


class ToolCompleted(_FrozenModel):
    """A tool has finished executing."""

    type: Literal["tool_completed"] = "tool_completed"
    tool_name: str
    tool_input: str | None = None
    tool_result: str | None = None


class Complete(_FrozenModel):
    """The response is complete."""

    type: Literal["complete"] = "complete"


class StreamError(_FrozenModel):
    """The engine reported an error."""

    type: Literal["error"] = "error"
    message: str


StreamingUpdate = Annotated[
    TextDelta | Thinking | ToolStarted | ToolCompleted | Complete | StreamError,
    Field(discriminator="type"),
]

# ============================================================================
# Request result
# ============================================================================


class ResponseOutcome(str, Enum):
    """Terminal state of one request."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class ChatResponse(_FrozenModel):
    """Result of ChatOrchestrator.process_message().

    content holds the aggregated assistant text; for non-completed outcomes it
    is whatever had streamed before the request ended.
    """

    outcome: ResponseOutcome
    content: str = ""
    error: str | None = None
    error_code: ErrorCode | None = None
    tool_calls: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.outcome is ResponseOutcome.COMPLETED

    @property
    def text(self) -> str:
        """User-facing text for this outcome."""
        if self.outcome is ResponseOutcome.COMPLETED:
            return self.content
        if self.outcome is ResponseOutcome.CANCELLED:
            return MSG_CANCELLED
        if self.outcome is ResponseOutcome.TIMED_OUT:
            return MSG_TIMED_OUT
        return f"{MSG_ERROR_PREFIX}{self.error or 'Unknown error'}"

    def __str__(self) -> str:
        return self.text


__all__ = [
    "ChatResponse",
    "Complete",
    "ErrorEvent",
    "IdleEvent",
    "MessageEvent",
    "ReasoningDeltaEvent",
    "ResponseOutcome",
    "SessionEvent",
    "StreamError",
    "StreamingUpdate",
    "TextDelta",
    "TextDeltaEvent",
    "Thinking",
    "ToolCompleteEvent",
    "ToolCompleted",
    "ToolStartEvent",
    "ToolStarted",
    "session_event_adapter",
]
