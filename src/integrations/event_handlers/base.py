"""
Base state tracking for session event handlers.

- CallTracker: matches tool completions with their start events
- ResponseAccumulator: builds the final response text from deltas or a full message
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CallTracker:
    """Tracks in-flight tool calls by call id.

    Uses dict for O(1) lookup so parallel tool calls that complete
    out-of-order still match their start events. Completed ids are
    remembered so a repeated completion is never reported twice.
    """

    active_calls: dict[str, tuple[str, str | None]] = field(default_factory=dict)  # {call_id: (name, args)}
    completed_ids: set[str] = field(default_factory=set)
    completed_names: list[str] = field(default_factory=list)

    def add_call(self, call_id: str | None, tool_name: str, arguments: str | None = None) -> None:
        """Add a new tool call to track."""
        if call_id and call_id not in self.active_calls and call_id not in self.completed_ids:
            self.active_calls[call_id] = (tool_name, arguments)

    def has_call(self, call_id: str) -> bool:
        return call_id in self.active_calls

    def is_completed(self, call_id: str | None) -> bool:
        return bool(call_id) and call_id in self.completed_ids

    def complete_call(self, call_id: str | None, tool_name: str) -> tuple[str, str | None] | None:
        """Mark a call complete and return its tracked (name, arguments), if any."""
        self.completed_names.append(tool_name)
        if not call_id:
            return None
        self.completed_ids.add(call_id)
        return self.active_calls.pop(call_id, None)

    def lookup(self, call_id: str | None) -> tuple[str, str | None] | None:
        if not call_id:
            return None
        return self.active_calls.get(call_id)

    def drain_all(self) -> list[tuple[str, str]]:
        """Drain calls that never completed as (call_id, tool_name) pairs."""
        result = [(cid, name) for cid, (name, _args) in self.active_calls.items()]
        self.active_calls.clear()
        return result

    def __len__(self) -> int:
        return len(self.active_calls)


@dataclass
class ResponseAccumulator:
    """Aggregates assistant text for one request.

    Deltas are canonical. A full message is only used when no delta ever
    arrived, so engines that send both never double-count.
    """

    deltas: list[str] = field(default_factory=list)
    full_message: str | None = None
    saw_delta: bool = False

    def add_delta(self, content: str) -> None:
        self.saw_delta = True
        self.deltas.append(content)

    def set_full_message(self, content: str) -> None:
        # First full message wins; later ones belong to the same response
        if self.full_message is None:
            self.full_message = content

    @property
    def text(self) -> str:
        if self.saw_delta:
            return "".join(self.deltas)
        return self.full_message or ""
