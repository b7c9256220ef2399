"""Application state management for Notebook Chat.

ConversationState is the single container for one chat window's state.
It is passed explicitly to runtime functions rather than held in
module-level globals.
"""

from __future__ import annotations

import uuid

from dataclasses import dataclass, field

from core.audit_log import AuditLog
from core.cancellation import CancellationToken
from core.orchestrator import ChatOrchestrator
from models.chat_models import ChatMessage, Transcript

STATUS_READY = "Ready"


@dataclass
class ConversationState:
    """State for one conversation.

    Attributes:
        orchestrator: Drives the engine session for this conversation
        audit_log: Shared audit log (also held by the orchestrator)
        transcript: Messages shown to the user, in order
        initialized: True once the orchestrator finished initialize()
        active_token: Token of the request currently streaming, if any
        streaming_message: Assistant placeholder receiving the current stream
        status_message: Short human-readable status ("Thinking...", "Ready")
        current_tool: Name of the tool currently executing, if any
        is_thinking: True between a Thinking update and the first text
        conversation_id: Correlates log lines for this conversation
    """

    orchestrator: ChatOrchestrator
    audit_log: AuditLog
    transcript: Transcript = field(default_factory=Transcript)
    initialized: bool = False
    active_token: CancellationToken | None = None
    streaming_message: ChatMessage | None = None
    status_message: str = STATUS_READY
    current_tool: str | None = None
    is_thinking: bool = False
    conversation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    @property
    def is_busy(self) -> bool:
        return self.active_token is not None

    def reset_status(self) -> None:
        self.status_message = STATUS_READY
        self.current_tool = None
        self.is_thinking = False
