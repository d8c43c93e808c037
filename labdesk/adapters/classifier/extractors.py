"""Regex-based extractors that pull order ids and patient names from free text.

Both extractors are pure and total: no match returns None, never an error.
Patterns are tried in priority order and the first usable capture wins, even
when a later pattern would also match.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern

from labdesk.core.types import ExtractedEntities, Patient

_ORDER_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\border\s+(?:id\s+)?([A-Za-z0-9]+)", re.I),
    re.compile(r"\b([A-Za-z0-9]+)\s+order\b", re.I),
    re.compile(r"#([A-Za-z0-9]+)", re.I),
    re.compile(r"\b(O[0-9]{4})\b", re.I),
]

# Words that sit next to "order" in ordinary phrasing and are never ids.
_ORDER_FILLER = {
    "a", "an", "the", "my", "our", "your", "their", "his", "her", "this", "that",
    "new", "latest", "last", "recent", "first", "next", "same", "another", "any",
    "is", "was", "for", "to", "of", "on", "in", "and", "or", "with", "status",
    "details", "detail", "info", "number", "id", "s", "test", "lab", "kit",
    "show", "view", "see", "display", "open", "pull", "get", "find", "check",
    "track", "give", "tell", "place", "create", "submit", "make", "start",
}

_NAME = r"([A-Za-z]+(?:\s+[A-Za-z]+)*?)"
_KEYWORDS = r"(?:results?|tests?|orders?|information|info|records?|profile|data|history)"
_TAIL = r"(?:'s)?(?:\s+" + _KEYWORDS + r"\b|\s*[?.!]*\s*$)"

_NAME_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\bpatient\s+" + _NAME + _TAIL, re.I),
    re.compile(r"\bfor\s+(?:patient\s+)?" + _NAME + _TAIL, re.I),
    re.compile(r"\b(?:find|show|get)\s+(?:me\s+)?(?:the\s+)?(?:patient\s+)?" + _NAME + _TAIL, re.I),
    re.compile(r"\b" + _NAME + r"'s\s+" + _KEYWORDS + r"\b", re.I),
]

# Leading words a capture can pick up that are not part of a name.
_NAME_FILLER = {
    "me", "the", "a", "an", "my", "all", "patient", "patients", "his", "her",
    "their", "latest", "recent", "last", "any", "some", "this", "that", "test",
    "lab", "order", "orders", "results", "result", "status", "details",
    "show", "find", "get", "view", "see", "display", "open", "pull", "up",
    "check", "track", "give", "tell", "what", "where", "is", "are", "can",
    "could", "would", "i", "you", "please", "about", "of", "on", "us",
    "for", "with", "to",
}


def _usable_order_token(token: str) -> bool:
    return bool(token) and token.lower() not in _ORDER_FILLER


def extract_order_id(text: str) -> Optional[str]:
    """Return the first order id candidate in `text`, case preserved."""
    if not text:
        return None
    for pat in _ORDER_PATTERNS:
        for m in pat.finditer(text):
            token = m.group(1).strip()
            if _usable_order_token(token):
                return token
    return None


def _clean_name(raw: str) -> Optional[str]:
    words = raw.split()
    while words and words[0].lower() in _NAME_FILLER:
        words.pop(0)
    if not words:
        return None
    return " ".join(words)


def extract_patient_name(text: str, patients: Iterable[Patient] = ()) -> Optional[str]:
    """Return a patient name span from `text`.

    Keyword patterns ("patient X", "for X", "show me X's orders", ...) are tried
    first. Failing those, each known patient name is looked for as a
    case-insensitive substring and the span is returned in the caller's case.
    """
    if not text:
        return None
    for pat in _NAME_PATTERNS:
        for m in pat.finditer(text):
            name = _clean_name(m.group(1))
            if name:
                return name

    lowered = text.lower()
    for patient in patients:
        needle = (patient.get("name") or "").lower()
        if not needle:
            continue
        start = lowered.find(needle)
        if start != -1:
            return text[start:start + len(needle)]
    return None


def extract_entities(text: str, patients: Iterable[Patient] = ()) -> ExtractedEntities:
    """Run both extractors; they are independent of classification."""
    return ExtractedEntities(
        order_id=extract_order_id(text),
        patient_name=extract_patient_name(text, patients),
    )
