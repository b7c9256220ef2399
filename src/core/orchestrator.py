"""
Streaming session orchestrator for Notebook Chat.

Turns one engine session's event stream into an ordered sequence of
StreamingUpdates plus a single ChatResponse per request:

    process_message()
      → cancel and await any in-flight request
      → subscribe (EngineEventChannel, released on every exit path)
      → send prompt
      → race: event pump | cancellation token | response timeout
      → ChatResponse(outcome=completed | failed | cancelled | timed_out)

Completed tool calls are written to the AuditLog on background tasks so the
conversation path never waits on an audit write.
"""

from __future__ import annotations

import asyncio
import time

from collections.abc import Callable, Sequence
from enum import Enum
from types import TracebackType
from typing import Any

from core.audit_log import AuditLog
from core.cancellation import CancellationToken
from core.constants import LOG_EVERY_N_DELTAS, RESPONSE_TIMEOUT_SECONDS, SUPERSEDE_TIMEOUT_SECONDS
from integrations.engine import EngineEventChannel
from integrations.event_handlers import (
    CallTracker,
    ResponseAccumulator,
    SessionEventHandler,
    build_event_handlers,
    normalize_event,
)
from models.audit_models import AuditOperation
from models.chat_models import ChatMessage
from models.error_models import ErrorCode, NotInitializedError
from models.event_models import (
    ChatResponse,
    Complete,
    ResponseOutcome,
    StreamError,
    StreamingUpdate,
    TextDelta,
    Thinking,
    ToolCompleted,
)
from models.sdk_models import EngineClient, EngineSession, SessionConfig
from utils.log_context import get_request_context, request_scope
from utils.logger import logger

UpdateCallback = Callable[[StreamingUpdate], None]
TerminalUpdate = Complete | StreamError


class RequestState(str, Enum):
    """Lifecycle of a single process_message() call."""

    IDLE = "idle"
    AWAITING_TERMINAL = "awaiting_terminal"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


_STATE_FOR_OUTCOME = {
    ResponseOutcome.COMPLETED: RequestState.COMPLETED,
    ResponseOutcome.FAILED: RequestState.FAILED,
    ResponseOutcome.CANCELLED: RequestState.CANCELLED,
    ResponseOutcome.TIMED_OUT: RequestState.TIMED_OUT,
}


class ChatOrchestrator:
    """Drives an engine session and reports tool calls to the audit log.

    One session is created by initialize() and reused for every request.
    Only one request is in flight at a time; starting a new one cancels the
    previous request, waits for it to release its subscription and stop the
    engine run, then sends the new prompt.
    """

    def __init__(
        self,
        client: EngineClient,
        audit_log: AuditLog,
        session_config: SessionConfig | None = None,
        response_timeout: float = RESPONSE_TIMEOUT_SECONDS,
        supersede_timeout: float = SUPERSEDE_TIMEOUT_SECONDS,
    ) -> None:
        if response_timeout <= 0:
            raise ValueError("response_timeout must be positive")
        if supersede_timeout <= 0:
            raise ValueError("supersede_timeout must be positive")
        self._client = client
        self._audit_log = audit_log
        self._session_config = session_config or SessionConfig()
        self._response_timeout = response_timeout
        self._supersede_timeout = supersede_timeout

        self._session: EngineSession | None = None
        self._client_started = False
        self._init_lock = asyncio.Lock()
        self._active_token: CancellationToken | None = None
        self._active_done: asyncio.Event | None = None
        self._handoff_lock = asyncio.Lock()
        self._background_tasks: set[asyncio.Task[None]] = set()
        self.request_state = RequestState.IDLE

    @property
    def is_initialized(self) -> bool:
        return self._session is not None

    @property
    def audit_log(self) -> AuditLog:
        return self._audit_log

    @property
    def is_busy(self) -> bool:
        """True while a request is awaiting its terminal event."""
        return self._active_token is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Start the engine client and create the conversation session.

        Idempotent. On failure the client is released and the error is
        re-raised so the caller can surface it.
        """
        async with self._init_lock:
            if self._session is not None:
                return

            try:
                await self._client.start()
                self._client_started = True
                self._session = await self._client.create_session(self._session_config)
            except Exception as exc:
                logger.error(f"Engine initialization failed: {exc}", exc_info=True)
                self._audit_log.log_failure(AuditOperation.INITIALIZE, str(exc))
                await self._release_client()
                raise

            self._audit_log.log_operation(AuditOperation.INITIALIZE)
            logger.info(f"Engine session ready (model: {self._session_config.model})")

    async def dispose(self) -> None:
        """Release the session, then the client. Safe to call repeatedly."""
        if self._active_token is not None:
            self._active_token.cancel_nowait("Orchestrator disposed")

        await self.flush_audit()

        session, self._session = self._session, None
        if session is not None:
            try:
                await session.dispose()
            except Exception as exc:
                logger.warning(f"Engine session dispose failed: {exc}")

        await self._release_client()

    async def _release_client(self) -> None:
        if not self._client_started:
            return
        self._client_started = False
        try:
            await self._client.dispose()
        except Exception as exc:
            logger.warning(f"Engine client dispose failed: {exc}")

    async def __aenter__(self) -> ChatOrchestrator:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def interrupt(self, reason: str = "User interrupt") -> bool:
        """Cancel the in-flight request, if any.

        Returns:
            True if a request was running and has been signalled
        """
        token = self._active_token
        if token is None or token.is_cancelled:
            return False
        token.cancel_nowait(reason)
        logger.info(f"Request interrupted: {reason}")
        return True

    async def process_message(
        self,
        user_message: str,
        conversation_history: Sequence[ChatMessage] = (),
        on_update: UpdateCallback | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> ChatResponse:
        """Send a user message and stream the engine's reply.

        Args:
            user_message: Prompt forwarded verbatim to the engine
            conversation_history: Prior transcript; the engine session keeps
                its own history, so this is informational only
            on_update: Called for every StreamingUpdate in arrival order
            cancellation_token: Caller-owned token; cancelling it ends the request

        Returns:
            ChatResponse describing how the request ended

        Raises:
            NotInitializedError: If initialize() has not completed
        """
        session = self._session
        if session is None:
            raise NotInitializedError()

        async with self._handoff_lock:
            await self._supersede_active(session)
            request_token = CancellationToken()
            request_done = asyncio.Event()
            self._active_token = request_token
            self._active_done = request_done
        unlink = request_token.link_to(cancellation_token) if cancellation_token is not None else None

        started = time.monotonic()
        outer = get_request_context()
        conversation_id = outer.conversation_id if outer is not None else None
        try:
            with request_scope(conversation_id=conversation_id, history_messages=len(conversation_history)):
                logger.info(f"Processing message ({len(user_message)} chars, {len(conversation_history)} prior)")
                response = await self._run_request(session, user_message, on_update, request_token)

                # A request that outlived its supersede wait no longer owns request_state
                if self._active_token is request_token:
                    self.request_state = _STATE_FOR_OUTCOME[response.outcome]
                logger.log_conversation_turn(
                    user_input=user_message,
                    response=response.content,
                    outcome=response.outcome.value,
                    tool_calls=list(response.tool_calls),
                    duration_ms=(time.monotonic() - started) * 1000,
                )
        finally:
            if unlink is not None:
                unlink()
            if self._active_token is request_token:
                self._active_token = None
                self._active_done = None
            request_done.set()
        return response

    async def _supersede_active(self, session: EngineSession) -> None:
        """Cancel the in-flight request and wait until it has let go of the session.

        If it does not finish within the supersede timeout the engine run is
        aborted directly so its events cannot reach the next subscription.
        """
        prior, prior_done = self._active_token, self._active_done
        if prior is None:
            return

        prior.cancel_nowait("Superseded by a new request")
        if prior_done is None:
            return
        try:
            await asyncio.wait_for(prior_done.wait(), timeout=self._supersede_timeout)
        except TimeoutError:
            logger.warning(f"Superseded request still running after {self._supersede_timeout:g}s, aborting engine run")
            await self._abort_engine(session, prior)

    async def _run_request(
        self,
        session: EngineSession,
        prompt: str,
        on_update: UpdateCallback | None,
        token: CancellationToken,
    ) -> ChatResponse:
        if token.is_cancelled:
            logger.info(f"Request cancelled before send: {token.cancel_reason or 'no reason given'}")
            return ChatResponse(outcome=ResponseOutcome.CANCELLED, error_code=ErrorCode.CANCELLED)

        tracker = CallTracker()
        accumulator = ResponseAccumulator()
        handlers = build_event_handlers(tracker, accumulator)
        self.request_state = RequestState.AWAITING_TERMINAL

        self._emit(on_update, Thinking())

        async with EngineEventChannel(session) as channel:
            # Stop receiving the moment the token fires, even before the pump is torn down
            token.on_cancel(channel.close)
            pump = asyncio.create_task(self._pump(session, channel, prompt, handlers, on_update, token))
            cancelled = asyncio.create_task(token.wait_for_cancellation())
            try:
                done, _pending = await asyncio.wait(
                    {pump, cancelled},
                    timeout=self._response_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                token.remove_callback(channel.close)
                for task in (pump, cancelled):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(pump, cancelled, return_exceptions=True)

        partial = accumulator.text
        completed_tools = tuple(tracker.completed_names)
        abandoned = tracker.drain_all()
        if abandoned:
            logger.info(f"{len(abandoned)} tool call(s) did not complete and were not audited")

        if pump in done:
            try:
                terminal = pump.result()
            except Exception as exc:
                logger.error(f"Engine transport fault: {exc}", exc_info=True)
                self._schedule_audit(self._audit_log.log_failure, AuditOperation.ERROR, str(exc))
                return ChatResponse(
                    outcome=ResponseOutcome.FAILED,
                    content=partial,
                    error=str(exc),
                    error_code=ErrorCode.ENGINE_TRANSPORT_FAULT,
                    tool_calls=completed_tools,
                )

            if isinstance(terminal, Complete):
                return ChatResponse(outcome=ResponseOutcome.COMPLETED, content=partial, tool_calls=completed_tools)
            if isinstance(terminal, StreamError):
                self._schedule_audit(self._audit_log.log_failure, AuditOperation.ERROR, terminal.message)
                return ChatResponse(
                    outcome=ResponseOutcome.FAILED,
                    content=partial,
                    error=terminal.message,
                    error_code=ErrorCode.ENGINE_REPORTED_ERROR,
                    tool_calls=completed_tools,
                )

        if token.is_cancelled:
            logger.info(f"Request cancelled: {token.cancel_reason or 'no reason given'}")
            await self._abort_engine(session, token)
            return ChatResponse(
                outcome=ResponseOutcome.CANCELLED,
                content=partial,
                error_code=ErrorCode.CANCELLED,
                tool_calls=completed_tools,
            )

        message = f"No response within {self._response_timeout:g}s"
        logger.warning(f"Request timed out: {message}")
        await self._abort_engine(session, token)
        self._schedule_audit(self._audit_log.log_failure, AuditOperation.ERROR, message)
        return ChatResponse(
            outcome=ResponseOutcome.TIMED_OUT,
            content=partial,
            error=message,
            error_code=ErrorCode.TIMED_OUT,
            tool_calls=completed_tools,
        )

    async def _pump(
        self,
        session: EngineSession,
        channel: EngineEventChannel,
        prompt: str,
        handlers: dict[str, SessionEventHandler],
        on_update: UpdateCallback | None,
        token: CancellationToken,
    ) -> TerminalUpdate | None:
        """Send the prompt and dispatch events until a terminal one arrives.

        Returns None when the channel closes first (cancellation).
        """
        await session.send(prompt)

        deltas = 0
        async for raw in channel:
            if token.is_cancelled:
                return None

            event = normalize_event(raw)
            if event is None:
                continue

            update = handlers[event.type](event)
            if update is None:
                continue

            if isinstance(update, TextDelta):
                deltas += 1
                if deltas % LOG_EVERY_N_DELTAS == 0:
                    logger.debug(f"Streamed {deltas} text deltas")
            elif isinstance(update, ToolCompleted):
                self._schedule_audit(
                    self._audit_log.log_tool_operation,
                    AuditOperation.TOOL_CALL,
                    update.tool_name,
                    update.tool_input,
                    update.tool_result,
                )
                logger.log_function_call(update.tool_name, update.tool_input, update.tool_result)

            self._emit(on_update, update)

            if isinstance(update, Complete | StreamError):
                return update
        return None

    async def _abort_engine(self, session: EngineSession, token: CancellationToken) -> None:
        """Stop engine-side work for an abandoned request.

        Skipped when a newer request has already taken over the session.
        """
        if self._active_token is not token:
            return
        abort = getattr(session, "abort", None)
        if abort is None:
            return
        try:
            await abort()
        except Exception as exc:
            logger.warning(f"Engine abort failed: {exc}")

    @staticmethod
    def _emit(on_update: UpdateCallback | None, update: StreamingUpdate) -> None:
        if on_update is None:
            return
        try:
            on_update(update)
        except Exception as exc:
            logger.warning(f"Update callback failed on {update.type}: {exc}")

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _schedule_audit(self, write: Callable[..., Any], *args: Any) -> None:
        """Run an audit write on a worker thread without awaiting it."""
        task = asyncio.create_task(self._write_audit(write, *args))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    @staticmethod
    async def _write_audit(write: Callable[..., Any], *args: Any) -> None:
        try:
            await asyncio.to_thread(write, *args)
        except Exception as exc:
            logger.warning(f"Audit write failed [{ErrorCode.AUDIT_WRITE_FAILED.value}]: {exc}")

    async def flush_audit(self) -> None:
        """Wait for scheduled audit writes to land."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)


__all__ = ["ChatOrchestrator", "RequestState", "UpdateCallback"]
