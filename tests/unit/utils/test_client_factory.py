"""Tests for OpenAI client factory utilities.

Tests client creation and configuration.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import httpx

from core.constants import Settings
from utils.client_factory import (
    DEFAULT_READ_TIMEOUT,
    create_client_from_settings,
    create_http_client,
    create_openai_client,
)


class TestCreateHttpClient:
    """Tests for create_http_client function."""

    def test_default_timeouts(self) -> None:
        """Test that the read timeout allows long reasoning pauses."""
        client = create_http_client()

        assert isinstance(client, httpx.AsyncClient)
        assert client.timeout.read == DEFAULT_READ_TIMEOUT

    def test_custom_read_timeout(self) -> None:
        assert create_http_client(read_timeout=5.0).timeout.read == 5.0


class TestCreateOpenAIClient:
    """Tests for create_openai_client function."""

    def test_create_openai_client_minimal(self) -> None:
        """Test creating OpenAI client with minimal args."""
        with patch("utils.client_factory.AsyncOpenAI") as mock_async_openai:
            mock_client = Mock()
            mock_async_openai.return_value = mock_client

            result = create_openai_client(api_key="test-key")

            assert result is mock_client
            call_kwargs = mock_async_openai.call_args[1]
            assert call_kwargs["api_key"] == "test-key"
            assert isinstance(call_kwargs["http_client"], httpx.AsyncClient)
            assert "base_url" not in call_kwargs

    def test_create_openai_client_with_base_url(self) -> None:
        with patch("utils.client_factory.AsyncOpenAI") as mock_async_openai:
            create_openai_client(api_key="test-key", base_url="https://api.example.com")

            assert mock_async_openai.call_args[1]["base_url"] == "https://api.example.com"

    def test_create_openai_client_with_http_client(self) -> None:
        """Test that a provided HTTP client is passed through."""
        http_client = httpx.AsyncClient()
        with patch("utils.client_factory.AsyncOpenAI") as mock_async_openai:
            create_openai_client(api_key="test-key", http_client=http_client)

            assert mock_async_openai.call_args[1]["http_client"] is http_client


class TestCreateClientFromSettings:
    """Tests for provider selection."""

    def test_openai_provider(self, mock_env: dict[str, str]) -> None:
        with patch("utils.client_factory.create_openai_client") as mock_create:
            create_client_from_settings(Settings(_env_file=None))

            mock_create.assert_called_once_with(api_key="sk-test-key-1234567890")

    def test_azure_provider(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        """Test that Azure settings use the endpoint as base URL."""
        monkeypatch.setenv("API_PROVIDER", "azure")
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6")
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://test.openai.azure.com/openai/v1/")

        with patch("utils.client_factory.create_openai_client") as mock_create:
            create_client_from_settings(Settings(_env_file=None))

            mock_create.assert_called_once_with(
                api_key="a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6",
                base_url="https://test.openai.azure.com/openai/v1/",
            )
