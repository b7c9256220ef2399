"""
Type definitions for conversational engine integration.

Provides runtime-checkable Protocols describing the engine client and
session surface the orchestrator depends on, plus the session config model.
Any SDK binding that satisfies these protocols can drive the orchestrator.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from core.constants import DEFAULT_MODEL

#: Callback an engine invokes for every session event. May run on any thread.
EventHandler = Callable[[Any], None]

#: Releases a subscription. Must be safe to call more than once.
Unsubscribe = Callable[[], None]


class SessionConfig(BaseModel):
    """Configuration for a new engine session."""

    model: str = DEFAULT_MODEL
    system_message: str | None = None
    system_message_mode: Literal["append", "replace"] = "append"
    streaming: bool = True
    #: Tool server definitions keyed by server name (engine-specific shape)
    tool_servers: dict[str, dict[str, Any]] = Field(default_factory=dict)


@runtime_checkable
class EngineSession(Protocol):
    """A stateful conversation with the engine that emits an event stream."""

    async def send(self, prompt: str) -> None:  # pragma: no cover - structural typing only
        ...

    def subscribe(self, handler: EventHandler) -> Unsubscribe:  # pragma: no cover - structural typing only
        ...

    async def dispose(self) -> None:  # pragma: no cover - structural typing only
        ...


@runtime_checkable
class EngineClient(Protocol):
    """Connection to a conversational engine."""

    async def start(self) -> None:  # pragma: no cover - structural typing only
        ...

    async def create_session(self, config: SessionConfig) -> EngineSession:  # pragma: no cover
        ...

    async def dispose(self) -> None:  # pragma: no cover - structural typing only
        ...


__all__ = [
    "EngineClient",
    "EngineSession",
    "EventHandler",
    "SessionConfig",
    "Unsubscribe",
]
