"""
Cancellation token for cooperative request cancellation.

Provides a cleaner alternative to flag-based interruption with:
- Cancellation signaling via asyncio.Event
- Async waiting for cancellation with timeout support
- Callback registration and parent/child linking
"""

from __future__ import annotations

import asyncio
import contextlib

from collections.abc import Callable

from utils.logger import logger


class CancellationToken:
    """Cooperative cancellation token.

    Tokens are signaled from the event loop thread. A request token can be
    linked to a caller-supplied token so cancelling the caller's token
    cancels the request without the caller knowing the request exists.

    Usage:
        token = CancellationToken()

        # In producer/controller:
        await token.cancel("User interrupt")

        # In consumer/worker:
        if token.is_cancelled:
            return
    """

    __slots__ = ("_callbacks", "_cancel_reason", "_cancelled", "_lock")

    def __init__(self) -> None:
        self._cancelled = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._cancel_reason: str | None = None
        self._lock = asyncio.Lock()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled.is_set()

    @property
    def cancel_reason(self) -> str | None:
        """Get the reason for cancellation, if any."""
        return self._cancel_reason

    async def cancel(self, reason: str | None = None) -> None:
        """Request cancellation and notify all callbacks.

        Args:
            reason: Optional reason for cancellation (for logging/debugging)
        """
        async with self._lock:
            self.cancel_nowait(reason)

    def cancel_nowait(self, reason: str | None = None) -> None:
        """Synchronous cancel for use from callbacks. Idempotent."""
        if self._cancelled.is_set():
            return

        self._cancel_reason = reason
        self._cancelled.set()

        for callback in list(self._callbacks):
            self._invoke_callback(callback)
        self._callbacks.clear()

    def _invoke_callback(self, callback: Callable[[], None]) -> None:
        """Safely invoke a callback, logging any errors."""
        try:
            callback()
        except Exception as e:
            logger.warning(f"Cancellation callback error: {e}")

    async def wait_for_cancellation(self, timeout: float | None = None) -> bool:
        """Wait for cancellation to be requested.

        Args:
            timeout: Maximum time to wait (None = wait forever)

        Returns:
            True if cancelled, False if timeout expired
        """
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback to be called when cancelled.

        Runs the callback immediately if the token is already cancelled.

        Returns:
            The callback (for use as decorator)
        """
        if self._cancelled.is_set():
            self._invoke_callback(callback)
            return callback

        self._callbacks.append(callback)
        return callback

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Remove a previously registered callback."""
        with contextlib.suppress(ValueError):
            self._callbacks.remove(callback)

    def link_to(self, parent: CancellationToken) -> Callable[[], None]:
        """Cancel this token whenever parent is cancelled.

        Returns:
            A function that removes the link
        """

        def propagate() -> None:
            self.cancel_nowait(parent.cancel_reason or "Parent token cancelled")

        parent.on_cancel(propagate)
        return lambda: parent.remove_callback(propagate)


__all__ = ["CancellationToken"]
