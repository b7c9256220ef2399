"""Shared test fixtures for Notebook Chat test suite.

Provides the scripted engine, audit log and orchestrator fixtures.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from core.audit_log import AuditLog
from core.constants import get_settings
from core.orchestrator import ChatOrchestrator
from fakes import FakeEngineClient, FakeEngineSession

# ============================================================================
# Test Isolation: Settings Cache
# ============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear cached settings so each test sees its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch) -> Generator[dict[str, str], None, None]:
    """Mock environment variables for an OpenAI provider configuration."""
    env_vars = {
        "API_PROVIDER": "openai",
        "OPENAI_API_KEY": "sk-test-key-1234567890",
        "OPENAI_MODEL": "gpt-5-mini",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    yield env_vars


@pytest.fixture
def fake_session() -> FakeEngineSession:
    return FakeEngineSession()


@pytest.fixture
def fake_client(fake_session: FakeEngineSession) -> FakeEngineClient:
    return FakeEngineClient(session=fake_session)


@pytest.fixture
def audit_log() -> AuditLog:
    return AuditLog(max_entries=100)


@pytest.fixture
def orchestrator(fake_client: FakeEngineClient, audit_log: AuditLog) -> ChatOrchestrator:
    """Orchestrator over the scripted engine (not yet initialized)."""
    return ChatOrchestrator(fake_client, audit_log, response_timeout=2.0)
