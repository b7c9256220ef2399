"""
In-memory audit log for Notebook Chat.

Records operation metadata (including tool inputs and outputs) for the
lifetime of the process. Safe to use from any thread and from the event loop.

Concurrency model:
- Appends go straight onto a deque; deque.append and deque.popleft are
  atomic, so writers never wait on each other.
- Trimming back to max_entries is best effort. The trim lock is taken with
  blocking=False; a writer that finds it held skips trimming and the next
  insert retries. Under write bursts the log can briefly exceed the cap by
  roughly the number of concurrent writers.
- Eviction is by insertion order (left end of the deque). Retrieval orders
  by timestamp, so under clock skew the two notions of "oldest" may differ.
"""

from __future__ import annotations

import itertools
import threading

from collections import deque

from core.constants import DEFAULT_RECENT_ENTRIES, MAX_AUDIT_ENTRIES
from models.audit_models import AuditLogEntry, AuditOperation
from utils.logger import logger


class AuditLog:
    """Bounded, append-only, thread-safe audit store."""

    def __init__(self, max_entries: int = MAX_AUDIT_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._entries: deque[AuditLogEntry] = deque()
        self._trim_lock = threading.Lock()
        self._sequence = itertools.count(1)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def log_operation(self, operation: AuditOperation) -> AuditLogEntry:
        """Record a successful operation with no payload."""
        return self._append(operation=operation, success=True)

    def log_tool_operation(
        self,
        operation: AuditOperation,
        tool_name: str,
        tool_input: str | None = None,
        tool_output: str | None = None,
    ) -> AuditLogEntry:
        """Record a successful tool operation with its input and output."""
        return self._append(
            operation=operation,
            success=True,
            tool_name=tool_name,
            tool_input=tool_input,
            tool_output=tool_output,
        )

    def log_failure(self, operation: AuditOperation, error_message: str) -> AuditLogEntry:
        """Record a failed operation."""
        return self._append(operation=operation, success=False, error_message=error_message)

    def get_recent_entries(self, count: int = DEFAULT_RECENT_ENTRIES) -> list[AuditLogEntry]:
        """Return up to count entries, most recent first. Does not mutate the log."""
        if count <= 0:
            return []
        # deque.copy() runs in C without yielding, so the snapshot is never torn
        snapshot = list(self._entries.copy())
        snapshot.sort(key=lambda e: (e.timestamp, e.sequence), reverse=True)
        return snapshot[:count]

    def clear_logs(self) -> None:
        """Remove all entries."""
        self._entries.clear()
        logger.info("Audit log cleared")

    def _append(self, **fields: object) -> AuditLogEntry:
        entry = AuditLogEntry(sequence=next(self._sequence), **fields)  # type: ignore[arg-type]
        self._entries.append(entry)
        logger.debug(
            f"Audit: {entry.operation.value} success={entry.success}"
            + (f" tool={entry.tool_name}" if entry.tool_name else ""),
        )
        self._trim()
        return entry

    def _trim(self) -> None:
        """Evict oldest entries past capacity, skipping if another trim is running."""
        if len(self._entries) <= self._max_entries:
            return
        if not self._trim_lock.acquire(blocking=False):
            return
        try:
            while len(self._entries) > self._max_entries:
                try:
                    self._entries.popleft()
                except IndexError:
                    # clear_logs() emptied the deque mid-trim
                    break
        finally:
            self._trim_lock.release()


__all__ = ["AuditLog"]
