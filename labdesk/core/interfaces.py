from __future__ import annotations
"""Interface definitions for the dashboard's swappable primitives.

These `Protocol`s define boundaries so implementations can be swapped without
changing orchestration logic (e.g., JSON fixtures vs. a real store, OpenAI vs.
a fake provider, print vs. logging telemetry).
"""
from typing import Callable, Protocol

from .types import (
    ActionMetadata,
    CatalogTest,
    ExtractedEntities,
    Intent,
    IntentId,
    Patient,
    PolicyDecision,
    Reply,
    TelemetryEvent,
    TestOrder,
)


class PatientRepository(Protocol):
    """Read access to patients and their lab orders."""

    def patients(self) -> list[Patient]: ...

    def find_by_id(self, patient_id: str) -> Patient | None: ...

    def find_by_name_fragment(self, fragment: str) -> list[Patient]: ...

    def get_order(self, order_id: str) -> TestOrder | None: ...

    def orders_for_patient(self, patient_id: str) -> list[TestOrder]: ...

    def list_recent_orders(self, limit: int = 5) -> list[TestOrder]: ...

    def orders_by_status(self, status: str) -> list[TestOrder]: ...

    def test_catalog(self) -> list[CatalogTest]: ...


class LLMProvider(Protocol):
    """Low-level LLM interface. Concrete providers wrap OpenAI or a local fake.

    `generate` returns `{"raw": <text or None>}`; `None` means the provider
    could not produce an answer and callers fall back to the rule-based reply.
    """

    def generate(self, messages: list[dict], response_format: dict | None = None) -> dict: ...


class IntentClassifier(Protocol):
    """Maps an utterance plus its extracted entities to one intent id."""

    def classify(self, text: str, entities: ExtractedEntities) -> IntentId: ...


class Planner(Protocol):
    """Resolves a classified intent into reply text and action metadata."""

    def plan(self, intent: IntentId, entities: ExtractedEntities, text: str) -> Reply: ...


class PolicyEngine(Protocol):
    def validate(self, metadata: ActionMetadata) -> PolicyDecision: ...


class ActionExecutor(Protocol):
    """Invokes registered navigation callbacks for action metadata."""

    def register(self, action: str, handler: Callable[..., None]) -> None: ...


class TelemetrySink(Protocol):
    """Records structured events for observability and evaluation."""

    def record(self, event: TelemetryEvent) -> None: ...


class IntentsRegistry(Protocol):
    """Provides intent definitions and canned help text."""

    def intents(self) -> list[Intent]: ...

    def help_text(self, topic: str) -> str: ...


class SessionMemoryHandle(Protocol):
    """Per-session memory: chat transcript, created-order overlay and the set of
    messages whose action was already dispatched.
    """

    def history(self) -> list[dict]: ...
    def append(self, message: dict) -> None: ...

    def created_orders(self) -> list[TestOrder]: ...
    def add_created_order(self, order: TestOrder) -> None: ...

    def dispatched(self) -> set[str]: ...
    def mark_dispatched(self, message_id: str) -> None: ...

    def prune(self, max_messages: int = 20) -> None: ...
    def clear(self) -> None: ...


class ConversationMemory(Protocol):
    """Factory for per-session memory handles."""

    def for_session(self, session_id: str) -> SessionMemoryHandle: ...
