"""
Error taxonomy for Notebook Chat.

Only NotInitializedError and MessageImmutableError are raised to callers.
Engine errors, transport faults, cancellation and timeouts are reported
as ChatResponse outcomes carrying an ErrorCode.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Application-specific error codes for categorization."""

    # Lifecycle errors (1xxx)
    NOT_INITIALIZED = "LIFE_1001"

    # Engine errors (2xxx)
    ENGINE_REPORTED_ERROR = "ENG_2001"
    ENGINE_TRANSPORT_FAULT = "ENG_2002"

    # Request termination (3xxx)
    CANCELLED = "REQ_3001"
    TIMED_OUT = "REQ_3002"

    # Transcript errors (4xxx)
    MESSAGE_IMMUTABLE = "MSG_4001"

    # Audit errors (5xxx)
    AUDIT_WRITE_FAILED = "AUD_5001"


class ChatCoreError(Exception):
    """Base class for errors raised by the chat core."""

    code: ErrorCode = ErrorCode.ENGINE_TRANSPORT_FAULT

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotInitializedError(ChatCoreError):
    """Raised when the orchestrator is used before initialize() succeeded."""

    code = ErrorCode.NOT_INITIALIZED

    def __init__(self, message: str = "ChatOrchestrator is not initialized. Call initialize() first.") -> None:
        super().__init__(message)


class EngineError(ChatCoreError):
    """Structured error reported by the conversational engine."""

    code = ErrorCode.ENGINE_REPORTED_ERROR


class MessageImmutableError(ChatCoreError):
    """Raised when a message field is assigned or a complete message is appended to."""

    code = ErrorCode.MESSAGE_IMMUTABLE


__all__ = [
    "ChatCoreError",
    "EngineError",
    "ErrorCode",
    "MessageImmutableError",
    "NotInitializedError",
]
