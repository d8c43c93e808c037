from __future__ import annotations
"""OpenAI LLM provider.

Implements the `LLMProvider` interface using the OpenAI Python SDK. Supports
both the Responses API and Chat Completions API, falling back automatically to
whichever is available in the installed SDK version. Every request carries an
explicit timeout; a timeout or API error yields `{"raw": None}` so the caller
can switch to the rule-based reply.
"""

import os
from typing import Any, Dict, List

import openai
from openai import OpenAI

from labdesk.common.logging import get_logger
from labdesk.core.errors import ProviderUnavailableError
from labdesk.core.interfaces import LLMProvider

logger = get_logger(__name__)


def _to_prompt_str(messages: List[Dict[str, Any]]) -> str:
    parts: List[str] = []
    for m in messages:
        role = m.get("role", "user")
        content = m.get("content", "")
        parts.append(f"[{role}]\n{content}")
    return "\n\n".join(parts)


class OpenAIProvider(LLMProvider):
    """Concrete LLM provider for OpenAI with graceful API fallback."""

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = 10.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> None:
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ProviderUnavailableError("OPENAI_API_KEY is required for OpenAIProvider")
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model or os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, messages: List[Dict[str, Any]], response_format: Dict | None = None) -> dict:
        """Call OpenAI and return `{"raw": text}`.

        - Prefers Chat Completions, which keeps the role structure.
        - Falls back to the Responses API with a flattened prompt.
        - Returns `{"raw": None}` when neither produced text.
        """
        chat_messages = [
            {"role": m.get("role", "user"), "content": m.get("content", "")}
            for m in messages
        ]

        # 1) Chat Completions API
        try:
            comp = self.client.chat.completions.create(
                model=self.model,
                messages=chat_messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            text = comp.choices[0].message.content if comp.choices else None
            if text:
                return {"raw": text}
        except (openai.APITimeoutError, openai.APIConnectionError) as exc:
            # Network trouble will not improve on the second API; give up now.
            logger.warning("OpenAI unreachable (%s); using rule-based reply", exc.__class__.__name__)
            return {"raw": None}
        except openai.OpenAIError as exc:
            logger.warning("Chat Completions failed (%s); trying Responses API", exc.__class__.__name__)

        # 2) Responses API
        try:
            resp = self.client.responses.create(model=self.model, input=_to_prompt_str(messages))
            text = getattr(resp, "output_text", None)
            if text:
                return {"raw": text}
        except openai.OpenAIError as exc:
            logger.warning("Responses API failed (%s); using rule-based reply", exc.__class__.__name__)

        # 3) Give up with a clear fallback
        return {"raw": None}
