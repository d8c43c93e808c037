from labdesk.adapters.llm.fake_provider import FakeLLMProvider
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.memory.in_memory import InMemoryConversationMemory
from labdesk.adapters.telemetry.logging_sink import ListSink
from labdesk.agent.router import ChatRouter


def test_track_known_order(ask):
    resp = ask("track order O5001")
    assert resp["role"] == "assistant"
    assert resp["id"].startswith("assistant-")
    assert resp["metadata"] == {
        "action": "track_order",
        "orderId": "O5001",
        "patientName": "James Wilson",
        "autoTrigger": True,
    }
    assert "O5001" in resp["content"]


def test_track_unknown_order_keeps_id_for_not_found_state(ask):
    resp = ask("track order O9999")
    assert resp["metadata"] == {"action": "track_order", "orderId": "O9999", "autoTrigger": True}
    assert 'couldn\'t find an order with ID "O9999"' in resp["content"]


def test_track_by_patient_uses_latest_order(ask):
    resp = ask("track John Doe's order")
    assert resp["metadata"]["orderId"] == "O5023"
    assert resp["metadata"]["patientName"] == "John Doe"


def test_track_without_identifier_asks_for_one(ask):
    resp = ask("where is it")
    assert "metadata" not in resp
    assert "order ID" in resp["content"]


def test_create_order_without_patient(ask):
    resp = ask("I need a lipid test")
    assert resp["metadata"] == {"action": "create_order", "autoTrigger": True}


def test_create_order_prefills_patient(ask):
    resp = ask("new order for James Wilson")
    assert resp["metadata"] == {
        "action": "create_order",
        "patientId": "P1001",
        "patientName": "James Wilson",
        "autoTrigger": True,
    }


def test_filter_by_patient_orders(ask):
    resp = ask("show me Maria Garcia's orders")
    assert resp["metadata"] == {
        "action": "filter_by_patient",
        "patientId": "P1002",
        "patientName": "Maria Garcia",
        "autoTrigger": True,
    }
    assert "Maria Garcia has 2 test orders" in resp["content"]


def test_results_question_routes_to_completed_order(ask):
    resp = ask("What are James Wilson's results?")
    assert resp["metadata"] == {"action": "view_order", "orderId": "O5001", "autoTrigger": True}


def test_view_order(ask):
    resp = ask("show order o5003")
    assert resp["metadata"] == {"action": "view_order", "orderId": "O5003", "autoTrigger": True}
    assert "Maria Garcia" in resp["content"]


def test_view_unknown_order_has_no_metadata(ask):
    resp = ask("show order O9998")
    assert "metadata" not in resp
    assert "O9998" in resp["content"]


def test_unknown_patient_has_no_metadata(ask):
    resp = ask("show me Xavier Quinn's orders")
    assert "metadata" not in resp
    assert "Xavier Quinn" in resp["content"]


def test_help_text(ask, intents):
    resp = ask("help")
    assert "metadata" not in resp
    assert resp["content"] == intents.help_text("general")


def test_telemetry_stages(ask, telemetry):
    ask("track order O5001")
    assert telemetry.stages() == [
        "received",
        "entities_extracted",
        "intent_classified",
        "resolved",
        "respond",
    ]


def test_history_is_recorded(ask, memory):
    resp = ask("track order O5001", session_id="hist")
    history = memory.for_session("hist").history()
    assert [m["role"] for m in history] == ["user", "assistant"]
    assert history[1]["metadata"] == resp["metadata"]


def _router_with(repo, intents, llm):
    telemetry = ListSink()
    router = ChatRouter(
        repository=repo,
        intents=intents,
        telemetry=telemetry,
        memory=InMemoryConversationMemory(),
        writer=LLMReplyWriter(llm, intents),
    )
    return router, telemetry


def test_llm_phrases_text_but_not_metadata(repo, intents, ask):
    baseline = ask("show me Maria Garcia's orders")
    router, telemetry = _router_with(repo, intents, FakeLLMProvider())
    resp = router.handle({"id": "u-1", "text": "show me Maria Garcia's orders", "context": {"session_id": "x"}})
    assert resp["content"] == FakeLLMProvider.PREFIX + baseline["content"]
    assert resp["metadata"] == baseline["metadata"]
    assert "provider_fallback" not in telemetry.stages()


def test_provider_unavailable_falls_back_silently(repo, intents, ask):
    baseline = ask("track order O5001")
    llm = FakeLLMProvider(available=False)
    router, telemetry = _router_with(repo, intents, llm)
    resp = router.handle({"id": "u-1", "text": "track order O5001", "context": {"session_id": "x"}})
    assert resp["content"] == baseline["content"]
    assert resp["metadata"] == baseline["metadata"]
    assert len(llm.calls) == 1
    assert "provider_fallback" in telemetry.stages()


def test_order_created_in_session_is_trackable(router, ask):
    from labdesk.tools.create_order import OrderRequest, create_order

    created = create_order(
        OrderRequest(patient_id="P1002", test_ids=["7"]),
        router.session_repository("s-1"),
        router.memory.for_session("s-1"),
    )
    resp = ask(f"track order {created.id}", session_id="s-1")
    assert resp["metadata"]["orderId"] == created.id
    assert resp["metadata"]["patientName"] == "Maria Garcia"

    other = ask(f"track order {created.id}", session_id="s-2")
    assert "couldn't find an order" in other["content"]


def test_verb_before_order_does_not_shadow_order_id(ask):
    resp = ask("show order details for O5001")
    assert resp["metadata"] == {"action": "view_order", "orderId": "O5001", "autoTrigger": True}

    tracked = ask("track order details for O5001")
    assert tracked["metadata"]["orderId"] == "O5001"
    assert tracked["metadata"]["patientName"] == "James Wilson"
