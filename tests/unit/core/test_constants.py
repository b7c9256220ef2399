"""Tests for constants module.

Tests settings loading and constant values.
"""

from __future__ import annotations

import pytest

from pydantic import ValidationError

from core.constants import (
    DEFAULT_MODEL,
    MAX_AUDIT_ENTRIES,
    RESPONSE_TIMEOUT_SECONDS,
    TERMINAL_EVENTS,
    Settings,
    get_settings,
)


class TestConstants:
    """Tests for module constants."""

    def test_default_model_defined(self) -> None:
        assert isinstance(DEFAULT_MODEL, str)
        assert len(DEFAULT_MODEL) > 0

    def test_limits(self) -> None:
        """Test the audit capacity and request timeout defaults."""
        assert MAX_AUDIT_ENTRIES == 1000
        assert RESPONSE_TIMEOUT_SECONDS == 300.0

    def test_terminal_events(self) -> None:
        assert frozenset({"idle", "error"}) == TERMINAL_EVENTS


class TestSettings:
    """Tests for Settings validation."""

    def test_openai_provider(self, mock_env: dict[str, str]) -> None:
        settings = Settings(_env_file=None)

        assert settings.api_provider == "openai"
        assert settings.openai_model == "gpt-5-mini"
        assert settings.response_timeout_seconds == RESPONSE_TIMEOUT_SECONDS
        assert settings.audit_max_entries == MAX_AUDIT_ENTRIES

    def test_provider_is_case_insensitive(self, mock_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PROVIDER", "OpenAI")
        assert Settings(_env_file=None).api_provider == "openai"

    def test_unknown_provider_rejected(self, mock_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PROVIDER", "bedrock")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_missing_openai_key_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PROVIDER", "openai")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="openai_api_key is required"):
            Settings(_env_file=None)

    def test_short_api_key_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "short")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_azure_endpoint_gets_trailing_slash(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Azure settings and endpoint normalization."""
        monkeypatch.setenv("API_PROVIDER", "azure")
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://test.openai.azure.com/openai/v1")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        settings = Settings(_env_file=None)

        assert settings.api_provider == "azure"
        assert settings.azure_endpoint_str == "https://test.openai.azure.com/openai/v1/"

    def test_non_positive_timeout_rejected(self, mock_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESPONSE_TIMEOUT_SECONDS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_caching(self, mock_env: dict[str, str]) -> None:
        """Test that settings are cached."""
        assert get_settings() is get_settings()
