"""Tests for EngineEventChannel."""

from __future__ import annotations

import asyncio
import threading

import pytest

from fakes import FakeEngineSession
from integrations.engine import EngineEventChannel


class TestEngineEventChannel:
    """Tests for subscription scoping and event delivery."""

    @pytest.mark.asyncio
    async def test_subscribes_for_block_only(self) -> None:
        """Test that the subscription lives exactly as long as the block."""
        session = FakeEngineSession()

        async with EngineEventChannel(session) as channel:
            assert channel.is_subscribed is True
            assert len(session.handlers) == 1

        assert channel.is_subscribed is False
        assert session.handlers == []

    @pytest.mark.asyncio
    async def test_unsubscribes_when_block_raises(self) -> None:
        """Test that an exception inside the block still releases the subscription."""
        session = FakeEngineSession()

        with pytest.raises(RuntimeError):
            async with EngineEventChannel(session):
                raise RuntimeError("consumer failed")

        assert session.unsubscribe_count == 1

    @pytest.mark.asyncio
    async def test_events_from_threads_arrive_in_order(self) -> None:
        """Test that events emitted from another thread are delivered in order."""
        session = FakeEngineSession()

        async with EngineEventChannel(session) as channel:
            worker = threading.Thread(target=lambda: [session.emit(i) for i in range(20)])
            worker.start()
            worker.join()
            received = [await asyncio.wait_for(channel.get(), timeout=1) for _ in range(20)]

        assert received == list(range(20))
        assert channel.received == 20

    @pytest.mark.asyncio
    async def test_events_after_close_are_dropped(self) -> None:
        """Test that a closed channel ignores late callbacks."""
        session = FakeEngineSession()
        channel = EngineEventChannel(session)
        async with channel:
            handler = session.handlers[0]

        handler("late")
        await asyncio.sleep(0)

        assert [event async for event in channel] == []
        assert channel.received == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        session = FakeEngineSession()
        async with EngineEventChannel(session) as channel:
            channel.close()
            channel.close()

        assert session.unsubscribe_count == 1

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_consumer(self) -> None:
        """Test that a consumer blocked on the channel stops when it is closed."""
        session = FakeEngineSession()
        async with EngineEventChannel(session) as channel:

            async def first_event() -> object:
                async for event in channel:
                    return event
                return None

            consumer = asyncio.create_task(first_event())
            await asyncio.sleep(0)
            channel.close()

            assert await asyncio.wait_for(consumer, timeout=1) is None
