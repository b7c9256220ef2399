"""
Unified event handler registry for engine session streaming.

Coordinates all session event handlers into a single registry keyed by
event type, and normalizes raw engine payloads into SessionEvent models.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from core.constants import (
    EVENT_ERROR,
    EVENT_IDLE,
    EVENT_MESSAGE,
    EVENT_REASONING_DELTA,
    EVENT_TEXT_DELTA,
    EVENT_TOOL_COMPLETE,
    EVENT_TOOL_START,
)
from models.event_models import (
    ErrorEvent,
    IdleEvent,
    MessageEvent,
    ReasoningDeltaEvent,
    SessionEvent,
    StreamingUpdate,
    TextDeltaEvent,
    ToolCompleteEvent,
    ToolStartEvent,
    session_event_adapter,
)
from utils.logger import logger

from .base import CallTracker, ResponseAccumulator
from .session_events import (
    create_message_handler,
    create_text_delta_handler,
    create_tool_complete_handler,
    create_tool_start_handler,
    handle_error,
    handle_idle,
    handle_reasoning_delta,
)

SessionEventHandler = Callable[[Any], StreamingUpdate | None]

KNOWN_EVENT_TYPES = frozenset(
    {
        EVENT_TEXT_DELTA,
        EVENT_MESSAGE,
        EVENT_REASONING_DELTA,
        EVENT_TOOL_START,
        EVENT_TOOL_COMPLETE,
        EVENT_IDLE,
        EVENT_ERROR,
    }
)

_SESSION_EVENT_CLASSES = (
    TextDeltaEvent,
    MessageEvent,
    ReasoningDeltaEvent,
    ToolStartEvent,
    ToolCompleteEvent,
    IdleEvent,
    ErrorEvent,
)


def build_event_handlers(tracker: CallTracker, accumulator: ResponseAccumulator) -> dict[str, SessionEventHandler]:
    """Build a complete registry of session event handlers keyed by event type.

    Args:
        tracker: CallTracker for matching tool completions with their starts
        accumulator: ResponseAccumulator collecting the response text

    Returns:
        Dictionary mapping event type strings to handler functions
    """
    return {
        EVENT_TEXT_DELTA: create_text_delta_handler(accumulator),
        EVENT_MESSAGE: create_message_handler(accumulator),
        EVENT_REASONING_DELTA: handle_reasoning_delta,
        EVENT_TOOL_START: create_tool_start_handler(tracker),
        EVENT_TOOL_COMPLETE: create_tool_complete_handler(tracker),
        EVENT_IDLE: handle_idle,
        EVENT_ERROR: handle_error,
    }


def normalize_event(raw: Any) -> SessionEvent | None:
    """Convert an engine payload (model or dict) into a SessionEvent.

    Unknown event types return None; engines emit plenty of lifecycle
    events the orchestrator does not care about. Models other than
    SessionEvents are dumped and validated like dicts.
    """
    if isinstance(raw, _SESSION_EVENT_CLASSES):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()

    if not isinstance(raw, dict):
        logger.debug(f"Ignoring non-dict engine event: {type(raw).__name__}")
        return None

    event_type = raw.get("type")
    if event_type not in KNOWN_EVENT_TYPES:
        logger.debug(f"Unknown event type: {event_type}")
        return None

    try:
        return session_event_adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning(f"Malformed {event_type} event ignored: {exc.error_count()} validation errors")
        return None


__all__ = [
    "KNOWN_EVENT_TYPES",
    "SessionEventHandler",
    "build_event_handlers",
    "normalize_event",
]
