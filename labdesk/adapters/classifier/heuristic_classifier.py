"""Keyword-based intent classifier shared by the chat API and the dashboard.

Rules are an explicit ordered list evaluated top-down; the first predicate that
holds wins. Tracking and creation phrasing are checked before bare identifiers
so "track order O5001" is never routed as a plain view.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from labdesk.core.interfaces import IntentClassifier, PatientRepository
from labdesk.core.types import ExtractedEntities, HelpTopic, IntentId, Patient

TRACK_PHRASES = (
    "track",
    "tracking",
    "status",
    "where is",
    "shipping",
    "delivery",
    "progress",
    "follow",
)
CHECK_OBJECTS = ("order", "package", "kit")

CREATE_PHRASES = (
    "new order",
    "create order",
    "place order",
    "make order",
    "submit order",
    "start order",
    "begin order",
    "initiate order",
    "order a test",
    "order test",
    "request a test",
    "request test",
    "schedule test",
    "schedule a test",
)
DESIRE_WORDS = ("need", "want", "would like")
DESIRE_OBJECTS = ("test", "order")

ORDER_TOPIC_WORDS = ("test", "order", "lab", "diagnostic", "panel", "specimen", "sample")
PATIENT_TOPIC_WORDS = (
    "patient", "person", "client", "individual", "subject", "customer",
    "profile", "record", "find", "search", "lookup",
)
RESULT_TOPIC_WORDS = (
    "result", "report", "finding", "outcome", "value", "data", "reading",
    "measurement", "analysis",
)


def _has_any(text: str, words) -> bool:
    return any(w in text for w in words)


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def resolve_patient(repository: PatientRepository, name: Optional[str]) -> Optional[Patient]:
    """First patient whose name contains `name`, else the first whose full name
    appears inside `name`. Store order breaks ties."""
    if not name:
        return None
    matches = repository.find_by_name_fragment(name)
    if matches:
        return matches[0]
    lowered = name.lower()
    return next(
        (p for p in repository.patients() if p.get("name") and p["name"].lower() in lowered),
        None,
    )


def is_tracking_request(text: str) -> bool:
    t = normalize(text)
    return _has_any(t, TRACK_PHRASES) or ("check" in t and _has_any(t, CHECK_OBJECTS))


def is_creation_request(text: str) -> bool:
    t = normalize(text)
    if _has_any(t, CREATE_PHRASES):
        return True
    return _has_any(t, DESIRE_WORDS) and _has_any(t, DESIRE_OBJECTS)


def help_topic(text: str) -> HelpTopic:
    """Pick which canned help string to show when no action applies."""
    t = normalize(text)
    if _has_any(t, ORDER_TOPIC_WORDS):
        return "orders"
    if _has_any(t, PATIENT_TOPIC_WORDS):
        return "patients"
    if _has_any(t, RESULT_TOPIC_WORDS):
        return "results"
    return "general"


@dataclass(frozen=True)
class _IntentRule:
    name: IntentId
    predicate: Callable[[str, ExtractedEntities, PatientRepository], bool]


RULES: List[_IntentRule] = [
    _IntentRule("track_order", lambda t, e, r: is_tracking_request(t)),
    _IntentRule("create_order", lambda t, e, r: is_creation_request(t)),
    _IntentRule("view_order", lambda t, e, r: bool(e.get("order_id"))),
    _IntentRule(
        "filter_by_patient",
        lambda t, e, r: resolve_patient(r, e.get("patient_name")) is not None,
    ),
]


def classify(text: str, entities: ExtractedEntities, repository: PatientRepository) -> IntentId:
    """Return the first matching intent for `text`, or "none"."""
    for rule in RULES:
        if rule.predicate(text, entities, repository):
            return rule.name
    return "none"


class HeuristicIntentClassifier(IntentClassifier):
    def __init__(self, repository: PatientRepository) -> None:
        self.repository = repository

    def classify(self, text: str, entities: ExtractedEntities) -> IntentId:
        return classify(text, entities, self.repository)
