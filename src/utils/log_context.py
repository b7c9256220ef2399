"""
Request context for Notebook Chat logging.

Provides request ID tracking, timing, and context propagation for chat
requests so every log line emitted while a request is in flight can be
correlated without passing identifiers through every call.
"""

from __future__ import annotations

import contextlib
import secrets
import time

from collections.abc import Iterator
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

# Context variable for request-scoped data
_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)

# Request ID prefix for easy identification in logs
REQUEST_ID_PREFIX = "req_"


@dataclass
class RequestContext:
    """Request-scoped context for tracking and logging."""

    request_id: str
    conversation_id: str | None = None
    start_time: float = field(default_factory=time.monotonic)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time since request start in milliseconds."""
        return (time.monotonic() - self.start_time) * 1000

    def to_log_context(self) -> dict[str, Any]:
        """Get context dict for logging."""
        ctx: dict[str, Any] = {
            "request_id": self.request_id,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }
        if self.conversation_id:
            ctx["conversation_id"] = self.conversation_id
        ctx.update(self.extra)
        return ctx


def generate_request_id() -> str:
    """Generate a short, unique request ID."""
    return f"{REQUEST_ID_PREFIX}{secrets.token_hex(6)}"


def get_request_context() -> RequestContext | None:
    """Get current request context (None outside a request)."""
    return _request_context.get()


@contextlib.contextmanager
def request_scope(conversation_id: str | None = None, **extra: Any) -> Iterator[RequestContext]:
    """Bind a fresh RequestContext for the duration of the block."""
    ctx = RequestContext(request_id=generate_request_id(), conversation_id=conversation_id, extra=dict(extra))
    token = _request_context.set(ctx)
    try:
        yield ctx
    finally:
        _request_context.reset(token)


__all__ = [
    "RequestContext",
    "generate_request_id",
    "get_request_context",
    "request_scope",
]
