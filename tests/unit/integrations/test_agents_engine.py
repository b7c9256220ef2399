"""Tests for the Agents SDK engine binding.

SDK stream events are stood in for by SimpleNamespace objects carrying the
same attributes; Runner is patched so no model is contacted.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from openai.types.responses import ResponseOutputMessage, ResponseOutputText

from integrations.agents_engine import AgentsEngineClient, translate_stream_event
from models.event_models import (
    ErrorEvent,
    IdleEvent,
    MessageEvent,
    ReasoningDeltaEvent,
    TextDeltaEvent,
    ToolCompleteEvent,
    ToolStartEvent,
)
from models.sdk_models import SessionConfig


def _raw(data_type: str, delta: str = "") -> SimpleNamespace:
    return SimpleNamespace(type="raw_response_event", data=SimpleNamespace(type=data_type, delta=delta))


def _item(item_type: str, **fields: Any) -> SimpleNamespace:
    return SimpleNamespace(type="run_item_stream_event", item=SimpleNamespace(type=item_type, **fields))


class TestTranslateStreamEvent:
    """Tests for SDK event translation."""

    def test_text_delta(self) -> None:
        assert translate_stream_event(_raw("response.output_text.delta", "Hi")) == TextDeltaEvent(delta_content="Hi")

    def test_reasoning_delta(self) -> None:
        event = translate_stream_event(_raw("response.reasoning_summary_text.delta", "hmm"))
        assert event == ReasoningDeltaEvent(delta_content="hmm")

    def test_other_raw_events_skipped(self) -> None:
        assert translate_stream_event(_raw("response.created")) is None
        assert translate_stream_event(SimpleNamespace(type="agent_updated_stream_event")) is None

    def test_tool_call(self) -> None:
        raw = SimpleNamespace(name="search", call_id="c1", arguments='{"q":"x"}')
        event = translate_stream_event(_item("tool_call_item", raw_item=raw))
        assert event == ToolStartEvent(tool_name="search", tool_call_id="c1", arguments='{"q":"x"}')

    def test_tool_output_from_dict_raw_item(self) -> None:
        """Test that function outputs (dict raw items) are matched by call id."""
        raw = {"type": "function_call_output", "call_id": "c1", "output": "found"}
        event = translate_stream_event(_item("tool_call_output_item", raw_item=raw, output={"hits": 2}))
        assert event == ToolCompleteEvent(tool_call_id="c1", result='{"hits":2}')

    def test_message_output(self) -> None:
        message = ResponseOutputMessage(
            id="msg_1",
            content=[ResponseOutputText(annotations=[], text="Full answer", type="output_text")],
            role="assistant",
            status="completed",
            type="message",
        )
        event = translate_stream_event(_item("message_output_item", raw_item=message))
        assert event == MessageEvent(content="Full answer")


def _streamed(events: list[Any], error: Exception | None = None) -> Mock:
    async def stream_events() -> AsyncIterator[Any]:
        for event in events:
            yield event
        if error is not None:
            raise error

    return Mock(stream_events=stream_events)


class TestAgentsEngineSession:
    """Tests for send/subscribe/dispose over a patched Runner."""

    @pytest.fixture
    def client(self) -> AgentsEngineClient:
        openai_client = MagicMock()
        openai_client.close = AsyncMock()
        return AgentsEngineClient(openai_client=openai_client)

    @pytest.mark.asyncio
    async def test_create_session_requires_start(self, client: AgentsEngineClient) -> None:
        with pytest.raises(RuntimeError):
            await client.create_session(SessionConfig())

    @pytest.mark.asyncio
    async def test_run_emits_events_then_idle(self, client: AgentsEngineClient) -> None:
        """Test that a run's stream is translated and ends with idle."""
        await client.start()
        session = await client.create_session(SessionConfig(tool_servers={}))
        received: list[Any] = []
        session.subscribe(received.append)

        stream = _streamed([_raw("response.output_text.delta", "Hi"), _raw("response.created")])
        with patch("integrations.agents_engine.Runner.run_streamed", return_value=stream) as run_streamed:
            await session.send("Hello")
            assert session._run_task is not None
            await session._run_task

        assert received == [TextDeltaEvent(delta_content="Hi"), IdleEvent()]
        assert run_streamed.call_args.kwargs["input"] == "Hello"
        await client.dispose()

    @pytest.mark.asyncio
    async def test_run_failure_emits_error(self, client: AgentsEngineClient) -> None:
        """Test that an exception during streaming becomes an error event."""
        await client.start()
        session = await client.create_session(SessionConfig(tool_servers={}))
        received: list[Any] = []
        session.subscribe(received.append)

        stream = _streamed([], error=RuntimeError("rate limited"))
        with patch("integrations.agents_engine.Runner.run_streamed", return_value=stream):
            await session.send("Hello")
            assert session._run_task is not None
            await session._run_task

        assert received == [ErrorEvent(message="rate limited")]
        await client.dispose()

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, client: AgentsEngineClient) -> None:
        await client.start()
        session = await client.create_session(SessionConfig(tool_servers={}))
        received: list[Any] = []
        unsubscribe = session.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        with patch("integrations.agents_engine.Runner.run_streamed", return_value=_streamed([])):
            await session.send("Hello")
            assert session._run_task is not None
            await session._run_task

        assert received == []
        await client.dispose()

    @pytest.mark.asyncio
    async def test_dispose_closes_owned_resources(self, client: AgentsEngineClient) -> None:
        """Test that dispose releases sessions; an injected OpenAI client is left open."""
        await client.start()
        await client.create_session(SessionConfig(tool_servers={}))

        await client.dispose()
        await client.dispose()

        client._openai_client.close.assert_not_called()  # type: ignore[union-attr]
