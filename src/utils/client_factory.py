"""
OpenAI client factory utilities.
Centralizes AsyncOpenAI client creation with consistent configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from openai import AsyncOpenAI

if TYPE_CHECKING:
    from core.constants import Settings

# Reasoning models can pause 30+ seconds while "thinking" before producing
# output, so the read timeout is generous
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_READ_TIMEOUT = 600.0
DEFAULT_WRITE_TIMEOUT = 30.0
DEFAULT_POOL_TIMEOUT = 30.0


def create_http_client(read_timeout: float | None = None) -> httpx.AsyncClient:
    """Create HTTP client with proper timeouts for streaming.

    Args:
        read_timeout: Read timeout in seconds (default: 600s for reasoning models)

    Returns:
        Configured httpx.AsyncClient
    """
    timeout = httpx.Timeout(
        connect=DEFAULT_CONNECT_TIMEOUT,
        read=read_timeout if read_timeout is not None else DEFAULT_READ_TIMEOUT,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )
    return httpx.AsyncClient(timeout=timeout)


def create_openai_client(
    api_key: str,
    base_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncOpenAI:
    """Create AsyncOpenAI client with consistent configuration.

    Args:
        api_key: OpenAI or Azure OpenAI API key
        base_url: Optional base URL for Azure or custom endpoints
        http_client: Optional preconfigured httpx client

    Returns:
        Configured AsyncOpenAI client
    """
    kwargs: dict[str, Any] = {"api_key": api_key, "http_client": http_client or create_http_client()}
    if base_url:
        kwargs["base_url"] = base_url
    return AsyncOpenAI(**kwargs)


def create_client_from_settings(settings: Settings) -> AsyncOpenAI:
    """Create the AsyncOpenAI client for the configured provider."""
    if settings.api_provider == "azure":
        return create_openai_client(
            api_key=settings.azure_openai_api_key or "",
            base_url=settings.azure_endpoint_str,
        )
    return create_openai_client(api_key=settings.openai_api_key or "")
