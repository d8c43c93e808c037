from __future__ import annotations
"""LLM reply writer.

Asks a text-generation provider to phrase the assistant's answer. Routing is
not delegated: the rule-based reply (and its metadata) is computed first and
handed to the model as facts, so the prose and the dashboard action agree.

Prompt structure:
  - system instructions listing the dashboard's capabilities
  - the conversation so far (user/assistant turns only)
  - a final system message with the routing decision and reply facts
"""
from typing import Dict, List, Optional

from labdesk.core.interfaces import IntentsRegistry, LLMProvider
from labdesk.core.types import Reply

_SYSTEM = (
    "You are a lab assistant specialized in helping with medical lab orders. "
    "Answer in two or three short, professional sentences. The dashboard performs "
    "any navigation itself: never describe metadata, JSON or internal fields, and "
    "never contradict the reply facts you are given."
)


class LLMReplyWriter:
    def __init__(self, llm: LLMProvider, intents: IntentsRegistry) -> None:
        """Store the provider and the registry used to describe capabilities."""
        self.llm = llm
        self.intents = intents

    def _messages(self, history: List[Dict], reply: Reply) -> List[Dict]:
        capabilities = "\n".join(
            f"- {it.get('id')}: {it.get('description')}" for it in self.intents.intents()
        )
        messages: List[Dict] = [
            {"role": "system", "content": _SYSTEM + "\n\nCapabilities:\n" + capabilities}
        ]
        for m in history:
            role = m.get("role")
            if role in ("user", "assistant") and isinstance(m.get("content"), str):
                messages.append({"role": role, "content": m["content"]})
        metadata = reply.get("metadata") or {}
        action = metadata.get("action") or "none"
        messages.append(
            {
                "role": "system",
                "content": f"Routing decision: {action}\nReply facts:\n{reply.get('content', '')}",
            }
        )
        return messages

    def write(self, history: List[Dict], reply: Reply) -> Optional[str]:
        """Return provider text, or None when the provider gave nothing."""
        result = self.llm.generate(self._messages(history, reply))
        text = result.get("raw")
        if isinstance(text, str) and text.strip():
            return text.strip()
        return None
