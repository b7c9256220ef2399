"""
Notebook Chat - streaming chat over a conversational engine session

Main entry point - orchestrates application lifecycle through bootstrap and runtime modules.
Reads one line of input at a time from stdin; assistant text is streamed to stdout.
"""

from __future__ import annotations

import asyncio
import sys

from app.bootstrap import initialize_application
from app.runtime import interrupt, send_user_message, show_recent_activity, shutdown
from app.state import ConversationState
from models.event_models import StreamError, StreamingUpdate, TextDelta, ToolStarted
from utils.logger import logger

STOP_COMMAND = "/stop"
ACTIVITY_COMMAND = "/activity"
QUIT_COMMANDS = frozenset({"/quit", "/exit"})


def print_update(update: StreamingUpdate) -> None:
    """Write streamed text and tool notices to stdout."""
    if isinstance(update, TextDelta):
        sys.stdout.write(update.content)
    elif isinstance(update, ToolStarted):
        sys.stdout.write(f"\n[{update.tool_name}]\n")
    elif isinstance(update, StreamError):
        sys.stdout.write(f"\n[error] {update.message}")
    sys.stdout.flush()


async def run_turn(state: ConversationState, text: str) -> None:
    if not text:
        return
    response = await send_user_message(state, text, on_update=print_update)
    last = state.transcript.last
    if response is None:
        # Local commands and notices never reach the engine
        if last is not None and last.role != "user":
            sys.stdout.write(last.content)
    elif not response.succeeded and not response.content:
        sys.stdout.write(response.text)
    sys.stdout.write("\n")
    sys.stdout.flush()


def start_turn(state: ConversationState, text: str, pending: set[asyncio.Task[None]]) -> asyncio.Task[None]:
    """Run a turn in the background; pending holds it until it finishes."""
    task = asyncio.create_task(run_turn(state, text))
    pending.add(task)
    task.add_done_callback(pending.discard)
    return task


async def main() -> None:
    """Main entry point for Notebook Chat.

    Phases:
    1. Bootstrap: settings, audit log, engine client and orchestrator
    2. Main Loop: read user input; a new line while a reply streams supersedes it
    3. Cleanup: cancel the active request and release the engine
    """
    state = await initialize_application()
    for message in state.transcript:
        sys.stdout.write(f"{message.content}\n")
    sys.stdout.flush()

    loop = asyncio.get_running_loop()
    pending: set[asyncio.Task[None]] = set()

    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            text = line.strip()

            if text.lower() in QUIT_COMMANDS:
                break
            if text.lower() == STOP_COMMAND:
                if not interrupt(state):
                    logger.debug("Stop requested with no active request")
                continue
            if text.lower() == ACTIVITY_COMMAND:
                sys.stdout.write(f"{show_recent_activity(state).content}\n")
                sys.stdout.flush()
                continue

            start_turn(state, text, pending)
    finally:
        await shutdown(state)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    cli()
