"""
Models Module - Data Models and Type Definitions
=================================================

Pydantic v2 models for runtime validation of everything crossing a module
boundary.

Modules:
    chat_models: ChatMessage (append-only while streaming) and Transcript
    event_models: Engine SessionEvents, StreamingUpdates and ChatResponse
    audit_models: AuditOperation and immutable AuditLogEntry
    sdk_models: Engine client/session Protocols and SessionConfig
    error_models: ErrorCode taxonomy and exception hierarchy
"""
