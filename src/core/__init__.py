"""
Core Application Layer - Orchestration and Configuration
========================================================

Modules:
    orchestrator: ChatOrchestrator, drives one engine session per conversation
    audit_log: Bounded, thread-safe, in-memory audit log
    cancellation: Cooperative CancellationToken with parent linking
    prompts: System instructions and session configuration
    constants: Configuration values and Pydantic settings validation

Request Lifecycle (orchestrator.py):
    Each process_message() call subscribes to the session for its own
    duration, sends the prompt, and races the event stream against the
    cancellation token and the response timeout. Exactly one outcome is
    reported: completed, failed, cancelled or timed_out.

Audit Log (audit_log.py):
    Appends never block. Trimming back to capacity is best effort and
    skipped by writers that find another trim in progress.
"""
