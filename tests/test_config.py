import pytest

from labdesk.adapters.llm.fake_provider import FakeLLMProvider
from labdesk.adapters.llm.openai_provider import OpenAIProvider
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.telemetry.logging_sink import PrintSink
from labdesk.core.config import DEFAULT_FIXTURES, Settings
from labdesk.core.errors import ProviderUnavailableError


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LABDESK_LLM_TIMEOUT", "2.5")
    monkeypatch.setenv("LABDESK_MAX_MESSAGES", "8")
    monkeypatch.setenv("LABDESK_FIXTURES", str(tmp_path / "p.json"))
    settings = Settings.from_env()
    assert settings.llm_configured
    assert settings.llm_timeout == 2.5
    assert settings.max_messages == 8
    assert settings.fixtures_path == tmp_path / "p.json"


def test_settings_defaults(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_MODEL", "LABDESK_FIXTURES", "LABDESK_MAX_MESSAGES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LABDESK_LLM_TIMEOUT", "soon")
    settings = Settings.from_env()
    assert not settings.llm_configured
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.llm_timeout == 10.0
    assert settings.fixtures_path == DEFAULT_FIXTURES
    assert settings.max_messages == 20


def test_openai_provider_requires_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ProviderUnavailableError):
        OpenAIProvider(model="gpt-4o-mini")


def test_registry(intents):
    assert [i["id"] for i in intents.intents()] == ["track_order", "create_order", "view_order", "filter_by_patient"]
    assert intents.button_label({"action": "filter_by_patient", "patientName": "Maria Garcia"}) == "View Maria Garcia's Orders"
    assert intents.button_label({"action": "view_order", "orderId": "O5001"}) == "View Order Details"
    assert intents.help_text("unknown") == intents.help_text("general")
    assert "O5001" in intents.help_text("orders")


def test_reply_writer_prompt(intents):
    llm = FakeLLMProvider()
    writer = LLMReplyWriter(llm, intents)
    history = [
        {"role": "system", "content": "ignored"},
        {"role": "user", "content": "track order O5001"},
    ]
    reply = {"content": "Tracking O5001.", "metadata": {"action": "track_order", "orderId": "O5001", "autoTrigger": True}}
    assert writer.write(history, reply) == FakeLLMProvider.PREFIX + "Tracking O5001."

    messages = llm.calls[0]
    assert [m["role"] for m in messages] == ["system", "user", "system"]
    assert "track_order" in messages[0]["content"]
    assert messages[-1]["content"] == "Routing decision: track_order\nReply facts:\nTracking O5001."


def test_reply_writer_empty_text_is_none(intents):
    writer = LLMReplyWriter(FakeLLMProvider(reply="   "), intents)
    assert writer.write([], {"content": "x"}) is None


def test_print_sink_writes_one_line_per_event(capsys):
    sink = PrintSink()
    sink.record({"stage": "received", "level": "info", "payload": {"history_count": 1}})
    sink.record({"stage": "provider_fallback", "level": "warn", "payload": {}})
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["- received: {'history_count': 1}", "! provider_fallback: {}"]
