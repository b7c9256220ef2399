"""Conversation runtime operations for Notebook Chat.

Functions here compose the orchestrator with the transcript: they own the
user-visible messages (placeholders, notices, errors) while the orchestrator
owns the engine session. All functions take ConversationState explicitly.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from app.state import ConversationState
from core.cancellation import CancellationToken
from core.constants import CLEAR_COMMAND, MSG_CHAT_CLEARED, MSG_NOT_READY
from models.audit_models import AuditLogEntry, AuditOperation
from models.chat_models import ChatMessage
from models.event_models import (
    ChatResponse,
    Complete,
    ResponseOutcome,
    StreamError,
    StreamingUpdate,
    TextDelta,
    Thinking,
    ToolCompleted,
    ToolStarted,
)
from utils.log_context import request_scope
from utils.logger import logger

MSG_WELCOME = "Welcome! I'm your AI assistant. Ask me anything!"
MSG_READY = "I'm ready to help! You can ask me anything."
MSG_NO_ACTIVITY = "No audit log entries yet."
ACTIVITY_LOG_COUNT = 20


async def start_conversation(state: ConversationState) -> bool:
    """Initialize the orchestrator and announce the result in the transcript.

    Returns:
        True if the conversation is ready for messages
    """
    if state.initialized:
        return True

    state.status_message = "Initializing..."
    try:
        await state.orchestrator.initialize()
    except Exception as e:
        logger.error(f"Conversation {state.conversation_id} failed to initialize: {e}")
        state.status_message = "Initialization failed"
        state.transcript.append(ChatMessage.assistant(f"Failed to initialize: {e}. Please restart the app."))
        return False

    state.initialized = True
    state.reset_status()
    state.transcript.append(ChatMessage.assistant(MSG_READY))
    return True


def _apply_update(
    state: ConversationState,
    placeholder: ChatMessage,
    token: CancellationToken,
    update: StreamingUpdate,
) -> None:
    """Fold one streaming update into the placeholder and status fields."""
    if isinstance(update, TextDelta):
        if placeholder.is_streaming:
            placeholder.append_content(update.content)
    if state.active_token is not token:
        # A newer request owns the status fields
        return

    if isinstance(update, TextDelta):
        state.is_thinking = False
        state.status_message = "Responding..."
    elif isinstance(update, Thinking):
        state.is_thinking = True
        state.status_message = "Thinking..."
    elif isinstance(update, ToolStarted):
        state.current_tool = update.tool_name
        state.status_message = f"Using tool: {update.tool_name}"
    elif isinstance(update, ToolCompleted):
        state.current_tool = None
        state.status_message = "Processing..."
    elif isinstance(update, Complete):
        state.reset_status()
    elif isinstance(update, StreamError):
        state.is_thinking = False
        state.current_tool = None
        state.status_message = f"Error: {update.message}"


async def send_user_message(
    state: ConversationState,
    text: str,
    on_update: Callable[[StreamingUpdate], None] | None = None,
) -> ChatResponse | None:
    """Handle one line of user input.

    Blank input is ignored and "/clear" resets the transcript locally.
    Anything else is appended as a user message and streamed into a new
    assistant placeholder. A message sent while another is streaming
    cancels the earlier one.

    Args:
        state: Conversation to send into
        text: Raw user input
        on_update: Optional observer called after each update is applied

    Returns:
        The ChatResponse, or None when nothing was sent to the engine
    """
    user_message = text.strip()
    if not user_message:
        return None

    if user_message.lower() == CLEAR_COMMAND:
        state.transcript.clear()
        state.transcript.append(ChatMessage.system(MSG_CHAT_CLEARED))
        logger.info(f"Conversation {state.conversation_id} cleared")
        return None

    state.transcript.append(ChatMessage.user(user_message))

    if not state.initialized:
        state.transcript.append(ChatMessage.assistant(MSG_NOT_READY))
        return None

    if state.active_token is not None:
        state.active_token.cancel_nowait("Superseded by a new message")

    history = state.transcript.history()
    placeholder = state.transcript.append(ChatMessage.assistant("", is_streaming=True))
    token = CancellationToken()
    state.active_token = token
    state.streaming_message = placeholder
    state.is_thinking = True
    state.status_message = "Thinking..."
    state.audit_log.log_operation(AuditOperation.CHAT_MESSAGE)

    def handle_update(update: StreamingUpdate) -> None:
        _apply_update(state, placeholder, token, update)
        if on_update is not None:
            on_update(update)

    response: ChatResponse | None = None
    try:
        with request_scope(conversation_id=state.conversation_id):
            response = await state.orchestrator.process_message(
                user_message,
                history,
                on_update=handle_update,
                cancellation_token=token,
            )
        if response.outcome in (ResponseOutcome.FAILED, ResponseOutcome.TIMED_OUT) and not placeholder.content:
            placeholder.append_content(response.text)
    except Exception as e:
        logger.error(f"Message processing failed: {e}", exc_info=True)
        prefix = "\n\n" if placeholder.content else ""
        placeholder.append_content(f"{prefix}Error: {e}")
    finally:
        placeholder.complete_streaming()
        if state.active_token is token:
            state.active_token = None
            state.streaming_message = None
            state.reset_status()

    return response


def interrupt(state: ConversationState) -> bool:
    """Cancel the message currently streaming.

    Returns:
        True if a request was in flight
    """
    token = state.active_token
    if token is None or token.is_cancelled:
        return False
    token.cancel_nowait("User interrupt")
    state.status_message = "Cancelling..."
    logger.info(f"Conversation {state.conversation_id} interrupted")
    return True


def format_recent_activity(entries: Iterable[AuditLogEntry]) -> str:
    """Render audit entries one per line: ``[HH:MM:SS] Operation - ✓`` or ``✗ error``."""
    lines = []
    for entry in entries:
        outcome = "✓" if entry.success else f"✗ {entry.error_message or ''}".rstrip()
        lines.append(f"[{entry.timestamp:%H:%M:%S}] {entry.operation.value} - {outcome}")
    return "\n".join(lines)


def show_recent_activity(state: ConversationState, count: int = ACTIVITY_LOG_COUNT) -> ChatMessage:
    """Append a system message summarizing the latest audit entries."""
    entries = state.audit_log.get_recent_entries(count)
    if not entries:
        return state.transcript.append(ChatMessage.system(MSG_NO_ACTIVITY))
    log = format_recent_activity(entries)
    return state.transcript.append(ChatMessage.system(f"**Recent Activity Log:**\n```\n{log}\n```"))


async def shutdown(state: ConversationState) -> None:
    """Cancel any in-flight request and release the engine."""
    interrupt(state)
    await state.orchestrator.dispose()
    state.initialized = False
    logger.info(f"Conversation {state.conversation_id} shut down")
