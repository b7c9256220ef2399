"""
Utils Module - Infrastructure Utilities
=======================================

Modules:
    logger: JSON structured logging with rotation and content redaction
    log_context: ContextVar-based request context merged into every log line
    client_factory: AsyncOpenAI client creation with streaming timeouts
    json_utils: Compact JSON serialization for tool payloads

Logging (logger.py):
    - Console handler: human-readable, colored, to stderr
    - Conversation handler: JSON Lines to logs/conversations.jsonl
    - Error handler: JSON Lines to logs/errors.jsonl
    Message and tool content is hidden unless ENABLE_CONTENT_LOGGING is set.
"""
