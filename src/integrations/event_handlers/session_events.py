"""
Session event handlers.

Each handler takes one engine SessionEvent, updates request state
(tracker, accumulator) and returns the StreamingUpdate to forward to the
caller, or None when the event produces no update.
"""

from __future__ import annotations

from collections.abc import Callable

from models.event_models import (
    Complete,
    ErrorEvent,
    IdleEvent,
    MessageEvent,
    ReasoningDeltaEvent,
    StreamError,
    StreamingUpdate,
    TextDelta,
    TextDeltaEvent,
    Thinking,
    ToolCompleted,
    ToolCompleteEvent,
    ToolStarted,
    ToolStartEvent,
)
from utils.logger import logger

from .base import CallTracker, ResponseAccumulator

UNKNOWN_TOOL = "unknown"


def create_text_delta_handler(accumulator: ResponseAccumulator) -> Callable[[TextDeltaEvent], StreamingUpdate | None]:
    def handle_text_delta(event: TextDeltaEvent) -> StreamingUpdate | None:
        accumulator.add_delta(event.delta_content)
        if not event.delta_content:
            return None
        return TextDelta(content=event.delta_content)

    return handle_text_delta


def create_message_handler(accumulator: ResponseAccumulator) -> Callable[[MessageEvent], StreamingUpdate | None]:
    def handle_message(event: MessageEvent) -> StreamingUpdate | None:
        accumulator.set_full_message(event.content)
        return None

    return handle_message


def handle_reasoning_delta(event: ReasoningDeltaEvent) -> StreamingUpdate | None:
    """Reasoning text is surfaced separately and never joins the response."""
    return Thinking(content=event.delta_content)


def create_tool_start_handler(tracker: CallTracker) -> Callable[[ToolStartEvent], StreamingUpdate | None]:
    def handle_tool_start(event: ToolStartEvent) -> StreamingUpdate | None:
        tracker.add_call(event.tool_call_id, event.tool_name, event.arguments)
        logger.info(f"Tool started: {event.tool_name} (call_id: {event.tool_call_id or 'none'})")
        return ToolStarted(tool_name=event.tool_name)

    return handle_tool_start


def create_tool_complete_handler(tracker: CallTracker) -> Callable[[ToolCompleteEvent], StreamingUpdate | None]:
    """Resolve name and input from the start event when the completion omits them."""

    def handle_tool_complete(event: ToolCompleteEvent) -> StreamingUpdate | None:
        if tracker.is_completed(event.tool_call_id):
            logger.warning(f"Duplicate tool completion ignored (call_id: {event.tool_call_id})")
            return None

        tracked = tracker.lookup(event.tool_call_id)
        tool_name = event.tool_name or (tracked[0] if tracked else UNKNOWN_TOOL)
        tool_input = event.tool_input if event.tool_input is not None else (tracked[1] if tracked else None)

        if event.tool_call_id and tracked is None:
            logger.warning(f"Tool completion for untracked call_id: {event.tool_call_id}")

        tracker.complete_call(event.tool_call_id, tool_name)
        logger.info(
            f"Tool completed: {tool_name} (call_id: {event.tool_call_id or 'none'}, success: {event.success})"
        )
        return ToolCompleted(tool_name=tool_name, tool_input=tool_input, tool_result=event.result)

    return handle_tool_complete


def handle_idle(_event: IdleEvent) -> StreamingUpdate | None:
    return Complete()


def handle_error(event: ErrorEvent) -> StreamingUpdate | None:
    logger.warning(f"Engine reported error: {event.message}")
    return StreamError(message=event.message)
