"""
System prompts and session configuration for Notebook Chat.
Centralizes all prompt engineering for the engine session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from models.sdk_models import SessionConfig

if TYPE_CHECKING:
    from core.constants import Settings

# Engine preamble; "append" mode adds SYSTEM_INSTRUCTIONS after it
BASE_INSTRUCTIONS = "You are a helpful assistant."

SYSTEM_INSTRUCTIONS = """You are a helpful AI assistant for working with notes and documents.
You have access to tools provided by the configured tool servers.

Be concise and helpful in your responses."""

# Tool servers started with every session, keyed by server name
DEFAULT_TOOL_SERVERS: dict[str, dict[str, Any]] = {
    "workiq": {
        "type": "stdio",
        "command": "npx",
        "args": ["-y", "@microsoft/workiq", "mcp"],
        "tools": ["*"],
    },
}


def build_session_config(settings: Settings, tool_servers: dict[str, dict[str, Any]] | None = None) -> SessionConfig:
    """Build the SessionConfig used for the application's engine session.

    Args:
        settings: Validated application settings
        tool_servers: Tool server map; defaults to DEFAULT_TOOL_SERVERS

    Returns:
        SessionConfig with streaming enabled and instructions appended
    """
    return SessionConfig(
        model=settings.openai_model,
        system_message=SYSTEM_INSTRUCTIONS,
        system_message_mode="append",
        streaming=True,
        tool_servers=dict(DEFAULT_TOOL_SERVERS if tool_servers is None else tool_servers),
    )


def resolve_instructions(config: SessionConfig) -> str:
    """Combine the engine preamble with the configured system message."""
    if not config.system_message:
        return BASE_INSTRUCTIONS
    if config.system_message_mode == "replace":
        return config.system_message
    return f"{BASE_INSTRUCTIONS}\n\n{config.system_message}"
