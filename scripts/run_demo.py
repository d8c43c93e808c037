#!/usr/bin/env python
from __future__ import annotations

"""Tiny demo that wires the chat components and runs a few utterances.

Routing is rule-based and works offline. When `OPENAI_API_KEY` is set the
replies are phrased by OpenAI (`OPENAI_MODEL` defaults to `gpt-4o-mini`);
otherwise the rule-based text is printed as-is.

Usage:
  python scripts/run_demo.py ["your own utterance" ...]
"""

import sys

from dotenv import load_dotenv

from labdesk.core.config import Settings
from labdesk.core.errors import ProviderUnavailableError
from labdesk.core.types import Interaction
from labdesk.agent.router import ChatRouter
from labdesk.adapters.datasource.json_data_source import JSONPatientRepository
from labdesk.adapters.intents.yaml_registry import YAMLIntentsRegistry
from labdesk.adapters.llm.openai_provider import OpenAIProvider
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.memory.in_memory import InMemoryConversationMemory
from labdesk.adapters.telemetry.logging_sink import PrintSink

SAMPLES = [
    "track order O5001",
    "I need a lipid test",
    "show me Maria Garcia's orders",
    "track order O9999",
    "what are James Wilson's results?",
    "help",
]


def main(argv: list[str]) -> None:
    """Wire components and run each utterance end-to-end in one session."""
    load_dotenv()
    settings = Settings.from_env()
    intents = YAMLIntentsRegistry(settings.intents_path)

    writer = None
    if settings.llm_configured:
        try:
            llm = OpenAIProvider(model=settings.openai_model, timeout=settings.llm_timeout)
            writer = LLMReplyWriter(llm, intents)
        except ProviderUnavailableError as exc:
            print(f"OpenAI disabled: {exc}")

    router = ChatRouter(
        repository=JSONPatientRepository(settings.fixtures_path),
        intents=intents,
        telemetry=PrintSink(),
        memory=InMemoryConversationMemory(max_messages=settings.max_messages),
        writer=writer,
    )

    for i, text in enumerate(argv or SAMPLES, start=1):
        interaction: Interaction = {
            "id": f"u-{i}",
            "text": text,
            "context": {"session_id": "demo", "channel": "cli"},
        }
        response = router.handle(interaction)
        print({"user": text, "assistant": response})


if __name__ == "__main__":
    main(sys.argv[1:])
