import pytest

from labdesk.adapters.datasource.json_data_source import JSONPatientRepository
from labdesk.adapters.intents.yaml_registry import YAMLIntentsRegistry
from labdesk.adapters.memory.in_memory import InMemoryConversationMemory
from labdesk.adapters.telemetry.logging_sink import ListSink
from labdesk.agent.router import ChatRouter
from labdesk.core.config import DEFAULT_FIXTURES, DEFAULT_INTENTS


@pytest.fixture
def repo():
    return JSONPatientRepository(DEFAULT_FIXTURES)


@pytest.fixture
def intents():
    return YAMLIntentsRegistry(DEFAULT_INTENTS)


@pytest.fixture
def telemetry():
    return ListSink()


@pytest.fixture
def memory():
    return InMemoryConversationMemory(max_messages=20)


@pytest.fixture
def router(repo, intents, telemetry, memory):
    return ChatRouter(repository=repo, intents=intents, telemetry=telemetry, memory=memory)


@pytest.fixture
def ask(router):
    """Send one utterance through the router and return the assistant message."""
    counter = {"n": 0}

    def _ask(text, session_id="s-1"):
        counter["n"] += 1
        return router.handle({
            "id": f"u-{counter['n']}",
            "text": text,
            "context": {"session_id": session_id, "channel": "test"},
        })

    return _ask
