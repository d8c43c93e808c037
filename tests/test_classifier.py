import pytest

from labdesk.adapters.classifier.extractors import extract_entities
from labdesk.adapters.classifier.heuristic_classifier import (
    RULES,
    HeuristicIntentClassifier,
    classify,
    help_topic,
    resolve_patient,
)


def _classify(text, repo):
    return classify(text, extract_entities(text, repo.patients()), repo)


def test_rule_order_is_pinned():
    assert [r.name for r in RULES] == ["track_order", "create_order", "view_order", "filter_by_patient"]


@pytest.mark.parametrize("text,intent", [
    ("track order O5001", "track_order"),
    ("Where is my kit?", "track_order"),
    ("check the order", "track_order"),
    ("status of Maria Garcia's order", "track_order"),
    ("I need a lipid test", "create_order"),
    ("new order for James Wilson", "create_order"),
    ("schedule a test", "create_order"),
    ("show order O5003", "view_order"),
    ("O5004", "view_order"),
    ("show me Maria Garcia's orders", "filter_by_patient"),
    ("What are James Wilson's results?", "filter_by_patient"),
    ("show me Xavier Quinn's orders", "none"),
    ("help", "none"),
])
def test_classify(repo, text, intent):
    assert _classify(text, repo) == intent


def test_tracking_beats_order_id(repo):
    # Both rule 1 and rule 3 hold; the earlier rule wins.
    assert _classify("track order O5002", repo) == "track_order"


def test_classifier_object_matches_function(repo):
    entities = extract_entities("show me Maria Garcia's orders", repo.patients())
    assert HeuristicIntentClassifier(repo).classify("show me Maria Garcia's orders", entities) == "filter_by_patient"


@pytest.mark.parametrize("text,topic", [
    ("help", "general"),
    ("tell me about lab tests", "orders"),
    ("search for someone", "patients"),
    ("what are the results", "results"),
])
def test_help_topic(text, topic):
    assert help_topic(text) == topic


def test_resolve_patient(repo):
    assert resolve_patient(repo, "maria")["id"] == "P1002"
    assert resolve_patient(repo, "Dr James Wilson")["id"] == "P1001"
    assert resolve_patient(repo, "Nobody Here") is None
    assert resolve_patient(repo, None) is None
