from __future__ import annotations
from typing import Dict, Any, List

from labdesk.core.interfaces import LLMProvider


class FakeLLMProvider(LLMProvider):
    """A local, deterministic LLM stand-in used for tests and demos.

    - Ignores model/network and echoes the routing facts it was given, prefixed
      so callers can tell the phrasing came from the provider.
    - `available=False` mimics a timed-out or unreachable provider.
    - Every call is kept in `calls` for inspection.
    """

    PREFIX = "[assistant] "

    def __init__(self, available: bool = True, reply: str | None = None) -> None:
        self.available = available
        self.reply = reply
        self.calls: List[List[Dict[str, Any]]] = []

    def generate(self, messages: List[Dict[str, Any]], response_format: dict | None = None) -> dict:
        """Return `{"raw": text}`, or `{"raw": None}` when unavailable."""
        self.calls.append(list(messages))
        if not self.available:
            return {"raw": None}
        if self.reply is not None:
            return {"raw": self.reply}

        # Echo the facts message the reply writer sends last.
        facts = ""
        for m in reversed(messages):
            if m.get("role") == "system":
                facts = m.get("content", "")
                break
        marker = "Reply facts:\n"
        if marker in facts:
            facts = facts.split(marker, 1)[1]
        return {"raw": self.PREFIX + facts.strip()}
