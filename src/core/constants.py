"""
Constants and configuration for Notebook Chat.
Centralizes all magic numbers and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Project Paths
# ============================================================================

#: Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# ============================================================================
# Engine Configuration
# ============================================================================

#: Default model used when creating engine sessions
DEFAULT_MODEL = "gpt-5.1"

#: Ceiling for a single request to reach a terminal event (5 minutes).
#: Requests that see neither idle nor error within this window time out.
RESPONSE_TIMEOUT_SECONDS = 300.0

#: How long a new request waits for the request it supersedes to wind down
#: before aborting engine-side work itself
SUPERSEDE_TIMEOUT_SECONDS = 5.0

#: Maximum agent turns per request (tool call loops)
MAX_CONVERSATION_TURNS = 50

# ============================================================================
# Audit Log Configuration
# ============================================================================

#: Maximum entries held by the audit log after a trim
MAX_AUDIT_ENTRIES = 1000

#: Default number of entries returned by get_recent_entries()
DEFAULT_RECENT_ENTRIES = 50

# ============================================================================
# Engine Event Types
# ============================================================================

#: Incremental assistant text
EVENT_TEXT_DELTA = "text_delta"

#: Final full assistant message (sent alongside or instead of deltas)
EVENT_MESSAGE = "message"

#: Incremental reasoning text
EVENT_REASONING_DELTA = "reasoning_delta"

#: Tool execution started
EVENT_TOOL_START = "tool_start"

#: Tool execution finished with a result
EVENT_TOOL_COMPLETE = "tool_complete"

#: Session finished processing the prompt (terminal)
EVENT_IDLE = "idle"

#: Session reported an error (terminal)
EVENT_ERROR = "error"

TERMINAL_EVENTS = frozenset({EVENT_IDLE, EVENT_ERROR})

# ============================================================================
# Agents SDK Stream Event Types
# ============================================================================

#: Event type for run item stream events from the Agents SDK
RUN_ITEM_STREAM_EVENT = "run_item_stream_event"

#: Event type for raw response events (token-level streaming)
RAW_RESPONSE_EVENT = "raw_response_event"

#: Item type for assistant message output
MESSAGE_OUTPUT_ITEM = "message_output_item"

#: Item type for tool/function invocation
TOOL_CALL_ITEM = "tool_call_item"

#: Item type for tool execution output
TOOL_CALL_OUTPUT_ITEM = "tool_call_output_item"

#: Raw response event carrying assistant text
RAW_OUTPUT_TEXT_DELTA = "response.output_text.delta"

#: Raw response events carrying reasoning text
RAW_REASONING_DELTAS = frozenset(
    {
        "response.reasoning_text.delta",
        "response.reasoning_summary_text.delta",
    }
)

# ============================================================================
# User-facing Messages
# ============================================================================

MSG_CANCELLED = "Request was cancelled."
MSG_TIMED_OUT = "Request timed out. Please try again."
MSG_ERROR_PREFIX = "I encountered an error processing your request: "
MSG_NOT_READY = "Please wait for initialization to complete."
MSG_CHAT_CLEARED = "Chat cleared. How can I help you?"

#: Local command that resets the transcript without contacting the engine
CLEAR_COMMAND = "/clear"

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size of a log file before rotation (10MB)
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of rotated conversation log files to keep
LOG_BACKUP_COUNT_CONVERSATIONS = 5

#: Number of rotated error log files to keep
LOG_BACKUP_COUNT_ERRORS = 3

#: Characters of user/assistant content shown in log previews
LOG_PREVIEW_LENGTH = 50

#: Length of the short logger instance id
SESSION_ID_LENGTH = 8

#: Log every Nth text delta to keep streaming logs readable
LOG_EVERY_N_DELTAS = 100


class Settings(BaseSettings):
    """Environment settings with validation.

    Loads from environment variables and .env file.
    Validates at startup to fail fast on configuration errors.
    Supports both Azure OpenAI and base OpenAI API providers.
    """

    # API provider selection
    api_provider: str = Field(default="openai", description="API provider: 'azure' or 'openai'")

    # Azure OpenAI settings (required if provider=azure)
    azure_openai_api_key: str | None = Field(default=None, description="Azure OpenAI API key for authentication")
    azure_openai_endpoint: HttpUrl | None = Field(default=None, description="Azure OpenAI endpoint URL")

    # Base OpenAI settings (required if provider=openai)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key for authentication")
    openai_model: str = Field(default=DEFAULT_MODEL, description="Model used for new engine sessions")

    # Orchestrator limits
    response_timeout_seconds: float = Field(
        default=RESPONSE_TIMEOUT_SECONDS, gt=0, description="Ceiling for a request to reach idle/error"
    )
    audit_max_entries: int = Field(default=MAX_AUDIT_ENTRIES, gt=0, description="Audit log capacity")

    # Logging
    debug: bool = Field(default=False, description="Enable debug logging")
    enable_content_logging: bool = Field(
        default=False, description="Include (redacted) message and tool content in log files"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow both OPENAI_API_KEY and openai_api_key
        extra="ignore",
    )

    @field_validator("api_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate API provider selection."""
        value = v.lower()
        if value not in ("azure", "openai"):
            raise ValueError("api_provider must be 'azure' or 'openai'")
        return value

    @field_validator("azure_openai_endpoint")
    @classmethod
    def ensure_endpoint_format(cls, v: HttpUrl | None) -> HttpUrl | None:
        """Ensure endpoint URL ends with trailing slash for OpenAI client."""
        if v is None:
            return None
        url_str = str(v)
        if not url_str.endswith("/"):
            return HttpUrl(url_str + "/")
        return v

    @field_validator("azure_openai_api_key", "openai_api_key")
    @classmethod
    def validate_api_key(cls, v: str | None) -> str | None:
        """Basic validation of API key format."""
        if v is not None and len(v) < 10:
            raise ValueError("Invalid API key format")
        return v

    def model_post_init(self, __context: Any) -> None:
        """Validate that required keys are present for selected provider."""
        if self.api_provider == "azure":
            if not self.azure_openai_api_key:
                raise ValueError("azure_openai_api_key is required when api_provider='azure'")
            if not self.azure_openai_endpoint:
                raise ValueError("azure_openai_endpoint is required when api_provider='azure'")
        elif not self.openai_api_key:
            raise ValueError("openai_api_key is required when api_provider='openai'")

    @property
    def azure_endpoint_str(self) -> str:
        """Get endpoint as string for OpenAI client."""
        if self.azure_openai_endpoint is None:
            return ""
        return str(self.azure_openai_endpoint)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to ensure we only load and validate settings once.
    Raises validation errors at startup if config is invalid.
    """
    return Settings()
