"""
Engine binding over the OpenAI Agents SDK.

AgentsEngineClient / AgentsEngineSession implement the EngineClient and
EngineSession protocols. Each send() runs Runner.run_streamed in a
background task and translates SDK stream events into SessionEvents:

    raw_response_event (output_text.delta)        → text_delta
    raw_response_event (reasoning deltas)         → reasoning_delta
    run_item_stream_event (tool_call_item)        → tool_start
    run_item_stream_event (tool_call_output_item) → tool_complete
    run_item_stream_event (message_output_item)   → message
    end of stream                                 → idle
    exception                                     → error
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
import uuid

from typing import Any

from agents import Agent, RunConfig, Runner, SQLiteSession, set_tracing_disabled
from agents.mcp import MCPServerStdio, MCPServerStreamableHttp
from agents.models.openai_provider import OpenAIProvider
from openai import AsyncOpenAI

from core.constants import (
    MAX_CONVERSATION_TURNS,
    MESSAGE_OUTPUT_ITEM,
    RAW_OUTPUT_TEXT_DELTA,
    RAW_REASONING_DELTAS,
    RAW_RESPONSE_EVENT,
    RUN_ITEM_STREAM_EVENT,
    TOOL_CALL_ITEM,
    TOOL_CALL_OUTPUT_ITEM,
    Settings,
    get_settings,
)
from core.prompts import resolve_instructions
from models.event_models import (
    ErrorEvent,
    IdleEvent,
    MessageEvent,
    ReasoningDeltaEvent,
    SessionEvent,
    TextDeltaEvent,
    ToolCompleteEvent,
    ToolStartEvent,
)
from models.sdk_models import EventHandler, SessionConfig, Unsubscribe
from utils.client_factory import create_client_from_settings
from utils.json_utils import json_compact
from utils.logger import logger

#: MCP server timeout in seconds (SDK default of 5s is too short for network tools)
TOOL_SERVER_TIMEOUT_SECONDS = 60.0

AGENT_NAME = "Notebook Chat"


# -----------------------------------------------------------------------------
# SDK event translation
# -----------------------------------------------------------------------------


def _raw_call_field(raw: Any, name: str) -> Any:
    if isinstance(raw, dict):
        return raw.get(name)
    return getattr(raw, name, None)


def _message_text(raw: Any) -> str:
    content = _raw_call_field(raw, "content") or []
    parts = [_raw_call_field(part, "text") or "" for part in content]
    return "".join(parts)


def _stringify(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json_compact(value)


def translate_stream_event(event: Any) -> SessionEvent | None:
    """Translate one Agents SDK stream event into a SessionEvent (None to skip)."""
    event_type = getattr(event, "type", None)

    if event_type == RAW_RESPONSE_EVENT:
        data = getattr(event, "data", None)
        data_type = getattr(data, "type", None)
        if data_type == RAW_OUTPUT_TEXT_DELTA:
            return TextDeltaEvent(delta_content=getattr(data, "delta", "") or "")
        if data_type in RAW_REASONING_DELTAS:
            return ReasoningDeltaEvent(delta_content=getattr(data, "delta", "") or "")
        return None

    if event_type != RUN_ITEM_STREAM_EVENT:
        return None

    item = getattr(event, "item", None)
    item_type = getattr(item, "type", None)
    raw = getattr(item, "raw_item", None)

    if item_type == MESSAGE_OUTPUT_ITEM:
        return MessageEvent(content=_message_text(raw))

    if item_type == TOOL_CALL_ITEM:
        call_id = _raw_call_field(raw, "call_id") or _raw_call_field(raw, "id")
        return ToolStartEvent(
            tool_name=_raw_call_field(raw, "name") or "unknown",
            tool_call_id=call_id,
            arguments=_stringify(_raw_call_field(raw, "arguments")),
        )

    if item_type == TOOL_CALL_OUTPUT_ITEM:
        call_id = getattr(item, "call_id", None) or _raw_call_field(raw, "call_id") or _raw_call_field(raw, "id")
        return ToolCompleteEvent(tool_call_id=call_id, result=_stringify(getattr(item, "output", None)))

    return None


# -----------------------------------------------------------------------------
# Tool servers
# -----------------------------------------------------------------------------


async def start_tool_servers(tool_servers: dict[str, dict[str, Any]]) -> list[Any]:
    """Connect the configured MCP servers. Servers that fail to start are skipped.

    Args:
        tool_servers: Map of server name to {"type": "stdio"|"http", ...}

    Returns:
        List of connected MCP server instances
    """
    servers: list[Any] = []
    for name, spec in tool_servers.items():
        server_type = spec.get("type", "stdio")
        try:
            if server_type == "stdio":
                server: Any = MCPServerStdio(
                    name=name,
                    params={"command": spec["command"], "args": list(spec.get("args", []))},
                    client_session_timeout_seconds=TOOL_SERVER_TIMEOUT_SECONDS,
                )
            elif server_type == "http":
                server = MCPServerStreamableHttp(
                    name=name,
                    params={"url": spec["url"]},
                    client_session_timeout_seconds=TOOL_SERVER_TIMEOUT_SECONDS,
                )
            else:
                logger.warning(f"Tool server '{name}' has unsupported type '{server_type}'")
                continue
            await server.connect()
        except Exception as e:
            logger.warning(f"Tool server '{name}' not available: {e}")
            continue
        servers.append(server)
        logger.info(f"Tool server '{name}' initialized (timeout: {TOOL_SERVER_TIMEOUT_SECONDS}s)")
    return servers


async def stop_tool_servers(servers: list[Any]) -> None:
    for server in servers:
        try:
            await server.cleanup()
        except Exception as e:
            logger.warning(f"Tool server cleanup failed: {e}")


# -----------------------------------------------------------------------------
# Session / client
# -----------------------------------------------------------------------------


class AgentsEngineSession:
    """One conversation with an Agent; history lives in an in-memory SQLiteSession."""

    def __init__(
        self,
        agent: Agent,
        run_config: RunConfig,
        streaming: bool = True,
        tool_servers: list[Any] | None = None,
        max_turns: int = MAX_CONVERSATION_TURNS,
    ) -> None:
        self.session_id = uuid.uuid4().hex
        self._agent = agent
        self._run_config = run_config
        self._streaming = streaming
        self._tool_servers = tool_servers or []
        self._max_turns = max_turns
        self._memory = SQLiteSession(self.session_id)
        self._handlers: list[EventHandler] = []
        self._handlers_lock = threading.Lock()
        self._run_task: asyncio.Task[None] | None = None

    def subscribe(self, handler: EventHandler) -> Unsubscribe:
        with self._handlers_lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._handlers_lock, contextlib.suppress(ValueError):
                self._handlers.remove(handler)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Session event handler failed on {event.type}: {e}")

    async def send(self, prompt: str) -> None:
        """Start a run for prompt. Returns once the run is scheduled."""
        await self.abort()
        self._run_task = asyncio.create_task(self._run(prompt))

    async def abort(self) -> None:
        """Stop the current run, if any."""
        task, self._run_task = self._run_task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self, prompt: str) -> None:
        try:
            if self._streaming:
                result = Runner.run_streamed(
                    self._agent,
                    input=prompt,
                    session=self._memory,
                    run_config=self._run_config,
                    max_turns=self._max_turns,
                )
                async for sdk_event in result.stream_events():
                    event = translate_stream_event(sdk_event)
                    if event is not None:
                        self._emit(event)
            else:
                run_result = await Runner.run(
                    self._agent,
                    input=prompt,
                    session=self._memory,
                    run_config=self._run_config,
                    max_turns=self._max_turns,
                )
                self._emit(MessageEvent(content=str(run_result.final_output or "")))
        except asyncio.CancelledError:
            logger.info(f"Run cancelled for session {self.session_id[:8]}")
            raise
        except Exception as e:
            logger.error(f"Agent run failed: {e}", exc_info=True)
            self._emit(ErrorEvent(message=str(e)))
            return
        self._emit(IdleEvent())

    async def dispose(self) -> None:
        await self.abort()
        with self._handlers_lock:
            self._handlers.clear()
        await stop_tool_servers(self._tool_servers)
        self._tool_servers = []
        self._memory.close()


class AgentsEngineClient:
    """EngineClient backed by an AsyncOpenAI client and the Agents SDK runner."""

    def __init__(
        self,
        openai_client: AsyncOpenAI | None = None,
        settings: Settings | None = None,
        max_turns: int = MAX_CONVERSATION_TURNS,
    ) -> None:
        self._openai_client = openai_client
        self._owns_client = openai_client is None
        self._settings = settings
        self._max_turns = max_turns
        self._provider: OpenAIProvider | None = None
        self._sessions: list[AgentsEngineSession] = []

    async def start(self) -> None:
        if self._provider is not None:
            return
        if self._openai_client is None:
            self._openai_client = create_client_from_settings(self._settings or get_settings())
        set_tracing_disabled(True)
        # Dedicated provider keeps this client's streams isolated from the SDK default client
        self._provider = OpenAIProvider(openai_client=self._openai_client)
        logger.info("Agents engine client started")

    async def create_session(self, config: SessionConfig) -> AgentsEngineSession:
        if self._provider is None:
            raise RuntimeError("Engine client is not started")

        servers = await start_tool_servers(config.tool_servers)
        agent = Agent(
            name=AGENT_NAME,
            model=config.model,
            instructions=resolve_instructions(config),
            mcp_servers=servers,
        )
        session = AgentsEngineSession(
            agent,
            RunConfig(model_provider=self._provider),
            streaming=config.streaming,
            tool_servers=servers,
            max_turns=self._max_turns,
        )
        self._sessions.append(session)
        logger.info(f"Created session {session.session_id[:8]} (model: {config.model}, tool servers: {len(servers)})")
        return session

    async def dispose(self) -> None:
        sessions, self._sessions = self._sessions, []
        for session in sessions:
            try:
                await session.dispose()
            except Exception as e:
                logger.warning(f"Session dispose failed: {e}")
        self._provider = None
        if self._owns_client and self._openai_client is not None:
            await self._openai_client.close()
            self._openai_client = None


__all__ = [
    "AgentsEngineClient",
    "AgentsEngineSession",
    "start_tool_servers",
    "stop_tool_servers",
    "translate_stream_event",
]
