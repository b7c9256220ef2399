"""
Integrations Module - Conversational Engine Integration
=======================================================

Modules:
    engine: EngineEventChannel, scoped async subscription to a session
    event_handlers: Normalization of engine events into streaming updates
    agents_engine: Engine client/session over the OpenAI Agents SDK

Engine callbacks may run on any thread. EngineEventChannel marshals them
onto the event loop so handlers always run in engine order on one thread.
"""
