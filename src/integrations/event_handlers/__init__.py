"""Session event handlers: normalize engine events into streaming updates."""

from __future__ import annotations

from .base import CallTracker, ResponseAccumulator
from .registry import KNOWN_EVENT_TYPES, SessionEventHandler, build_event_handlers, normalize_event

__all__ = [
    "KNOWN_EVENT_TYPES",
    "CallTracker",
    "ResponseAccumulator",
    "SessionEventHandler",
    "build_event_handlers",
    "normalize_event",
]
