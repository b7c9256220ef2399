"""Application initialization and configuration for Notebook Chat.

This module handles all bootstrap operations required before the first
message: environment loading, settings validation, engine client creation,
orchestrator and audit log setup.
"""

from __future__ import annotations

import os
import sys

from dotenv import load_dotenv

from app.runtime import MSG_WELCOME, start_conversation
from app.state import ConversationState
from core.audit_log import AuditLog
from core.constants import get_settings
from core.orchestrator import ChatOrchestrator
from core.prompts import build_session_config
from integrations.agents_engine import AgentsEngineClient
from models.chat_models import ChatMessage
from models.sdk_models import EngineClient
from utils.logger import logger


async def initialize_application(engine_client: EngineClient | None = None) -> ConversationState:
    """Initialize Notebook Chat and return a ready conversation.

    This function performs all bootstrap operations:
    1. Load environment variables and validate configuration
    2. Create the audit log and engine client (Agents SDK unless one is given)
    3. Build the orchestrator with the configured session and timeout
    4. Initialize the engine session; failures are reported in the transcript

    Args:
        engine_client: Optional engine to use instead of the Agents SDK binding

    Returns:
        ConversationState with a welcome message and the initialization result

    Raises:
        SystemExit: If configuration validation fails (prints helpful error message)
    """
    # Load environment variables from src/.env
    env_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")
    load_dotenv(env_path)

    try:
        settings = get_settings()
    except Exception as e:
        sys.stderr.write(f"Error: Configuration validation failed: {e}\n")
        sys.stderr.write("Please check your .env file has required variables:\n")
        sys.stderr.write("API_PROVIDER=openai (default): OPENAI_API_KEY, OPENAI_MODEL\n")
        sys.stderr.write("API_PROVIDER=azure: AZURE_OPENAI_API_KEY, AZURE_OPENAI_ENDPOINT\n")
        sys.exit(1)

    logger.info(f"Settings loaded for {settings.api_provider} (model: {settings.openai_model})")

    audit_log = AuditLog(max_entries=settings.audit_max_entries)
    client = engine_client if engine_client is not None else AgentsEngineClient(settings=settings)
    orchestrator = ChatOrchestrator(
        client,
        audit_log,
        session_config=build_session_config(settings),
        response_timeout=settings.response_timeout_seconds,
    )

    state = ConversationState(orchestrator=orchestrator, audit_log=audit_log)
    state.transcript.append(ChatMessage.system(MSG_WELCOME))

    if await start_conversation(state):
        logger.info(f"Conversation {state.conversation_id} ready")
    return state
