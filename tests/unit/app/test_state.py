"""Tests for app state module.

Tests ConversationState dataclass.
"""

from __future__ import annotations

from unittest.mock import Mock

from app.state import STATUS_READY, ConversationState
from core.audit_log import AuditLog
from core.cancellation import CancellationToken


class TestConversationState:
    """Tests for ConversationState dataclass."""

    def test_initialization(self) -> None:
        """Test ConversationState defaults."""
        audit_log = AuditLog()
        state = ConversationState(orchestrator=Mock(), audit_log=audit_log)

        assert state.audit_log is audit_log
        assert state.initialized is False
        assert state.is_busy is False
        assert state.status_message == STATUS_READY
        assert len(state.transcript) == 0
        assert len(state.conversation_id) == 8

    def test_each_state_has_own_transcript(self) -> None:
        """Test that transcripts are not shared between conversations."""
        first = ConversationState(orchestrator=Mock(), audit_log=AuditLog())
        second = ConversationState(orchestrator=Mock(), audit_log=AuditLog())

        assert first.transcript is not second.transcript
        assert first.conversation_id != second.conversation_id

    def test_busy_while_token_active(self) -> None:
        state = ConversationState(orchestrator=Mock(), audit_log=AuditLog())
        state.active_token = CancellationToken()
        assert state.is_busy is True

    def test_reset_status(self) -> None:
        """Test that reset_status clears transient status fields."""
        state = ConversationState(orchestrator=Mock(), audit_log=AuditLog())
        state.status_message = "Using tool: search"
        state.current_tool = "search"
        state.is_thinking = True

        state.reset_status()

        assert state.status_message == STATUS_READY
        assert state.current_tool is None
        assert state.is_thinking is False
