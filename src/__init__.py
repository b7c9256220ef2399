"""
Notebook Chat - Streaming chat core over a conversational engine
================================================================

Turns an engine's event-driven conversation session into ordered streaming
updates with cancellation, and records tool usage in a bounded audit log.

Modules:
    app: Conversation state, runtime operations, application bootstrap
    core: Orchestrator, audit log, cancellation, prompts, configuration
    models: Pydantic models for messages, events, audit entries and errors
    integrations: Engine event channel, event handlers, Agents SDK binding
    utils: Logging, request context, OpenAI client factory, JSON helpers

Example:
    Running a request against an initialized orchestrator::

        from core.audit_log import AuditLog
        from core.orchestrator import ChatOrchestrator
        from integrations.agents_engine import AgentsEngineClient

        async with ChatOrchestrator(AgentsEngineClient(), AuditLog()) as orchestrator:
            response = await orchestrator.process_message("Summarize my notes", on_update=print)
            print(response.text)
"""
