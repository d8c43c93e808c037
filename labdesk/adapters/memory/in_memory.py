from __future__ import annotations
"""In-memory implementation of ConversationMemory (Session handle façade).

Keeps per-session chat history, the orders created during the session and the
ids of messages whose action was already dispatched. Nothing is persisted.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set
from datetime import datetime, timezone

from labdesk.core.interfaces import ConversationMemory, SessionMemoryHandle
from labdesk.core.types import TestOrder


def now_iso() -> str:
    """Return a UTC ISO8601 timestamp string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class _SessionState:
    """Internal container for per-session state.

    - history: chronological list of chat messages
    - created_orders: append-only overlay of orders placed in this session
    - dispatched: message ids whose auto-triggered action already fired
    """

    history: List[dict] = field(default_factory=list)
    created_orders: List[TestOrder] = field(default_factory=list)
    dispatched: Set[str] = field(default_factory=set)


class InMemoryConversationMemory(ConversationMemory):
    """Dict-backed session memory with simple pruning.

    Notes
    - In-memory only: state resets when the process restarts.
    - Not thread-safe: each session is only touched by its own requests.
    - Pruning trims history only; created orders and dispatch marks are kept
      for the life of the session.
    """

    def __init__(self, max_messages: int = 20) -> None:
        self._sessions: Dict[str, _SessionState] = {}
        self._max_messages = max_messages

    def _ensure(self, sid: str) -> _SessionState:
        return self._sessions.setdefault(sid, _SessionState())

    class _Handle(SessionMemoryHandle):
        def __init__(self, outer: "InMemoryConversationMemory", sid: str) -> None:
            self._outer = outer
            self._sid = sid

        def history(self) -> List[dict]:
            """Return a copy of chronological messages for the session."""
            return list(self._outer._ensure(self._sid).history)

        def append(self, message: dict) -> None:
            """Append a message, stamping a `timestamp` if missing, then prune."""
            st = self._outer._ensure(self._sid)
            if "timestamp" not in message:
                message = {**message, "timestamp": now_iso()}
            st.history.append(message)
            self.prune(self._outer._max_messages)

        def created_orders(self) -> List[TestOrder]:
            return list(self._outer._ensure(self._sid).created_orders)

        def add_created_order(self, order: TestOrder) -> None:
            self._outer._ensure(self._sid).created_orders.append(order)

        def dispatched(self) -> Set[str]:
            return set(self._outer._ensure(self._sid).dispatched)

        def mark_dispatched(self, message_id: str) -> None:
            self._outer._ensure(self._sid).dispatched.add(message_id)

        def prune(self, max_messages: int = 20) -> None:
            """Keep only the most recent `max_messages` entries in history."""
            st = self._outer._ensure(self._sid)
            if len(st.history) > max_messages:
                st.history = st.history[-max_messages:]

        def clear(self) -> None:
            """Delete all state for this session."""
            if self._sid in self._outer._sessions:
                del self._outer._sessions[self._sid]

    def for_session(self, session_id: str) -> SessionMemoryHandle:
        """Return a session-scoped handle for convenient memory operations."""
        self._ensure(session_id)
        return InMemoryConversationMemory._Handle(self, session_id)
