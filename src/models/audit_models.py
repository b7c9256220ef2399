"""
Audit log models for Notebook Chat.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class AuditOperation(str, Enum):
    """Types of auditable operations."""

    CHAT_MESSAGE = "ChatMessage"
    TOOL_CALL = "ToolCall"
    INITIALIZE = "Initialize"
    ERROR = "Error"


class AuditLogEntry(BaseModel):
    """A single audit record. Immutable once created.

    sequence is assigned by the log at insertion and breaks timestamp ties
    so entries created within the same clock tick still sort newest-first.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sequence: int = 0
    operation: AuditOperation
    success: bool = True
    error_message: str | None = None
    tool_name: str | None = None
    tool_input: str | None = None
    tool_output: str | None = None


__all__ = ["AuditLogEntry", "AuditOperation"]
