import pytest

from labdesk.adapters.classifier.extractors import (
    extract_entities,
    extract_order_id,
    extract_patient_name,
)


@pytest.mark.parametrize("text,expected", [
    ("track order O5001", "O5001"),
    ("order id o5003", "o5003"),
    ("Where is order #O5002?", "O5002"),
    ("what about the ABC123 order?", "ABC123"),
    ("Can you check O5010 for me", "O5010"),
    ("show order details for O5001", "O5001"),
    ("view order info for O5002", "O5002"),
    ("track order details for O5001", "O5001"),
    ("open the order for o5004", "o5004"),
])
def test_extract_order_id(text, expected):
    assert extract_order_id(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "I need a lipid test",
    "show me my latest order",
    "create a new order",
    "show me Maria Garcia's orders",
])
def test_extract_order_id_none(text):
    assert extract_order_id(text) is None


def test_first_pattern_wins_over_canonical_shape():
    # "order X" is tried before the bare O#### shape.
    assert extract_order_id("order XY12 not O5001") == "XY12"


@pytest.mark.parametrize("text,expected", [
    ("show me Maria Garcia's orders", "Maria Garcia"),
    ("Show me test results for James Wilson", "James Wilson"),
    ("patient Sarah Johnson", "Sarah Johnson"),
    ("What are James Wilson's results?", "James Wilson"),
    ("find patient Robert Chen", "Robert Chen"),
    ("patient Maria Garcia's results", "Maria Garcia"),
    ("show me James Wilson's information", "James Wilson"),
])
def test_extract_patient_name_patterns(text, expected):
    assert extract_patient_name(text) == expected


def test_extract_patient_name_falls_back_to_known_names(repo):
    assert extract_patient_name("anything on john doe today", repo.patients()) == "john doe"


def test_extract_patient_name_none(repo):
    assert extract_patient_name("hello there", repo.patients()) is None
    assert extract_patient_name("") is None


def test_extract_entities_independent(repo):
    entities = extract_entities("track order O5001", repo.patients())
    assert entities == {"order_id": "O5001", "patient_name": None}


@pytest.mark.parametrize("text", [
    "show me Maria Garcia's orders",
    "track order O5001",
    "anything on john doe today",
    "order details for O5003",
])
def test_extraction_is_repeatable(repo, text):
    first = extract_entities(text, repo.patients())
    assert extract_entities(text, repo.patients()) == first
