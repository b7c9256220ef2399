"""
Async event channel over an engine session's callback subscription.

Engines deliver events through a callback that may run on any thread.
EngineEventChannel subscribes for the lifetime of an ``async with`` block,
marshals every callback onto the event loop with call_soon_threadsafe, and
exposes the events as an async iterator in arrival order.
"""

from __future__ import annotations

import asyncio
import threading

from types import TracebackType
from typing import Any

from models.sdk_models import EngineSession, Unsubscribe
from utils.logger import logger

# Queued by close() so a consumer blocked in get() wakes up and stops
_CLOSED = object()


class EngineEventChannel:
    """Scoped subscription to an EngineSession, consumed with ``async for``."""

    def __init__(self, session: EngineSession) -> None:
        self._session = session
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._closed = threading.Event()
        self.received = 0

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    async def __aenter__(self) -> EngineEventChannel:
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self._session.subscribe(self._on_event)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the subscription and end iteration. Idempotent; call from the loop thread."""
        if not self._closed.is_set():
            self._closed.set()
            self._queue.put_nowait(_CLOSED)
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception as exc:
            logger.warning(f"Engine unsubscribe failed: {exc}")

    def _on_event(self, event: Any) -> None:
        """Engine callback. Runs on whatever thread the engine uses."""
        if self._closed.is_set() or self._loop is None:
            return
        try:
            # Always go through the loop so events from mixed threads keep one FIFO order
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # Loop already closed; the request that owned this channel is gone
            logger.debug("Dropped engine event after event loop shutdown")

    async def get(self) -> Any:
        """Wait for the next event. Raises StopAsyncIteration once the channel is closed."""
        event = await self._queue.get()
        if event is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        self.received += 1
        return event

    def __aiter__(self) -> EngineEventChannel:
        return self

    async def __anext__(self) -> Any:
        return await self.get()


__all__ = ["EngineEventChannel"]
