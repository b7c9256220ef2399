"""Tests for CancellationToken."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from core.cancellation import CancellationToken


class TestCancellationToken:
    """Tests for cancel, wait and callbacks."""

    @pytest.mark.asyncio
    async def test_cancel_sets_state(self) -> None:
        """Test that cancel marks the token and stores the reason."""
        token = CancellationToken()
        assert token.is_cancelled is False

        await token.cancel("User interrupt")

        assert token.is_cancelled is True
        assert token.cancel_reason == "User interrupt"

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self) -> None:
        """Test that a second cancel keeps the first reason and skips callbacks."""
        token = CancellationToken()
        callback = Mock()
        token.on_cancel(callback)

        token.cancel_nowait("first")
        token.cancel_nowait("second")

        assert token.cancel_reason == "first"
        callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_wait_for_cancellation_timeout(self) -> None:
        """Test that waiting returns False when nothing cancels."""
        token = CancellationToken()
        assert await token.wait_for_cancellation(timeout=0.01) is False

    @pytest.mark.asyncio
    async def test_wait_for_cancellation_returns_true(self) -> None:
        """Test that waiting returns True once cancelled."""
        token = CancellationToken()
        token.cancel_nowait()
        assert await token.wait_for_cancellation(timeout=1) is True

    @pytest.mark.asyncio
    async def test_on_cancel_after_cancel_runs_immediately(self) -> None:
        """Test that registering on a cancelled token runs the callback at once."""
        token = CancellationToken()
        token.cancel_nowait()
        callback = Mock()

        token.on_cancel(callback)

        callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self) -> None:
        """Test that a failing callback does not stop the others."""
        token = CancellationToken()
        good = Mock()
        token.on_cancel(Mock(side_effect=RuntimeError("boom")))
        token.on_cancel(good)

        token.cancel_nowait()

        good.assert_called_once()

    @pytest.mark.asyncio
    async def test_remove_callback(self) -> None:
        """Test that removed callbacks are not invoked."""
        token = CancellationToken()
        callback = Mock()
        token.on_cancel(callback)
        token.remove_callback(callback)

        token.cancel_nowait()

        callback.assert_not_called()


class TestLinkedTokens:
    """Tests for link_to."""

    @pytest.mark.asyncio
    async def test_parent_cancel_propagates(self) -> None:
        """Test that cancelling the parent cancels the child."""
        parent = CancellationToken()
        child = CancellationToken()
        child.link_to(parent)

        parent.cancel_nowait("caller gave up")

        assert child.is_cancelled is True
        assert child.cancel_reason == "caller gave up"

    @pytest.mark.asyncio
    async def test_unlink_stops_propagation(self) -> None:
        """Test that the unlink function detaches the child."""
        parent = CancellationToken()
        child = CancellationToken()
        unlink = child.link_to(parent)

        unlink()
        parent.cancel_nowait()

        assert child.is_cancelled is False

    @pytest.mark.asyncio
    async def test_child_cancel_does_not_touch_parent(self) -> None:
        """Test that propagation is one-way."""
        parent = CancellationToken()
        child = CancellationToken()
        child.link_to(parent)

        child.cancel_nowait()

        assert parent.is_cancelled is False
