from __future__ import annotations
"""Chat router orchestrates the end-to-end flow.

Flow summary:
  received → entities_extracted → intent_classified → resolved
  → (provider_fallback) → respond

Routing is always rule-based; an optional LLM only rewrites the reply text.
Each session reads the fixture store through its own overlay of created
orders. Structured telemetry is emitted at each stage via the `TelemetrySink`.
"""
import uuid
from typing import List, Optional

from labdesk.core.types import (
    ChatMessage,
    ChatResponse,
    ExtractedEntities,
    IntentId,
    Interaction,
    Reply,
    TelemetryEvent,
)
from labdesk.core.interfaces import (
    ConversationMemory,
    IntentsRegistry,
    PatientRepository,
    SessionMemoryHandle,
    TelemetrySink,
)
from labdesk.adapters.classifier.extractors import extract_entities
from labdesk.adapters.classifier.heuristic_classifier import HeuristicIntentClassifier
from labdesk.adapters.datasource.overlay import SessionOverlayRepository
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.planner.action_planner import ActionPlanner


class ChatRouter:
    """Coordinates: extract → classify → resolve → (phrase) → respond."""

    def __init__(
        self,
        repository: PatientRepository,
        intents: IntentsRegistry,
        telemetry: TelemetrySink,
        memory: ConversationMemory,
        writer: Optional[LLMReplyWriter] = None,
    ) -> None:
        """Construct the router with swappable components.

        `writer` is None when no text-generation provider is configured.
        """
        self.repository = repository
        self.intents = intents
        self.telemetry = telemetry
        self.memory = memory
        self.writer = writer

    def session_repository(self, session_id: str) -> PatientRepository:
        """Fixture store plus the orders created in `session_id`."""
        return SessionOverlayRepository(self.repository, self.memory.for_session(session_id))

    def handle(self, interaction: Interaction) -> ChatResponse:
        """Process a single user utterance and return the assistant message."""
        session_id, sesh = self._init_session(interaction)
        repo = SessionOverlayRepository(self.repository, sesh)
        text = interaction.get("text", "") or ""

        entities = self._extract(interaction, text, repo, session_id)
        intent = self._classify(interaction, text, entities, repo, session_id)
        reply = self._resolve(interaction, intent, entities, text, repo, session_id)
        content = self._phrase(interaction, reply, sesh, session_id)

        response = ChatResponse(
            id=f"assistant-{uuid.uuid4().hex[:12]}",
            role="assistant",
            content=content,
        )
        if reply.get("metadata"):
            response["metadata"] = reply["metadata"]
        self._emit_final_response(interaction, session_id, sesh, response)
        return response

    # --- Helpers ---

    def _event(self, interaction: Interaction, session_id: str, stage: str, payload: dict, level: str = "info") -> None:
        self.telemetry.record(
            TelemetryEvent(
                timestamp="",
                interaction_id=interaction.get("id", ""),
                session_id=session_id,
                stage=stage,  # type: ignore[typeddict-item]
                level=level,  # type: ignore[typeddict-item]
                payload=payload,
            )
        )

    def _init_session(self, interaction: Interaction):
        session_id = interaction.get("context", {}).get("session_id", interaction.get("id", ""))
        sesh = self.memory.for_session(session_id)
        sesh.append(ChatMessage(id=interaction.get("id", ""), role="user", content=interaction.get("text", "")))
        self._event(interaction, session_id, "received", {"history_count": len(sesh.history())})
        return session_id, sesh

    def _extract(self, interaction: Interaction, text: str, repo: PatientRepository, session_id: str) -> ExtractedEntities:
        entities = extract_entities(text, repo.patients())
        self._event(
            interaction,
            session_id,
            "entities_extracted",
            {"order_id": entities.get("order_id"), "patient_name": entities.get("patient_name")},
        )
        return entities

    def _classify(
        self, interaction: Interaction, text: str, entities: ExtractedEntities, repo: PatientRepository, session_id: str
    ) -> IntentId:
        intent = HeuristicIntentClassifier(repo).classify(text, entities)
        self._event(interaction, session_id, "intent_classified", {"intent_id": intent})
        return intent

    def _resolve(
        self,
        interaction: Interaction,
        intent: IntentId,
        entities: ExtractedEntities,
        text: str,
        repo: PatientRepository,
        session_id: str,
    ) -> Reply:
        reply = ActionPlanner(repo, self.intents).plan(intent, entities, text)
        metadata = reply.get("metadata") or {}
        self._event(
            interaction,
            session_id,
            "resolved",
            {"action": metadata.get("action"), "auto_trigger": metadata.get("autoTrigger", False)},
        )
        return reply

    def _phrase(self, interaction: Interaction, reply: Reply, sesh: SessionMemoryHandle, session_id: str) -> str:
        content = reply.get("content", "")
        if self.writer is None:
            return content
        history: List[dict] = interaction.get("history") or sesh.history()
        text = self.writer.write(history, reply)
        if text is None:
            self._event(interaction, session_id, "provider_fallback", {"reason": "no_provider_text"}, level="warn")
            return content
        return text

    def _emit_final_response(
        self, interaction: Interaction, session_id: str, sesh: SessionMemoryHandle, response: ChatResponse
    ) -> None:
        self._event(interaction, session_id, "respond", {"message": response.get("content", "")})
        sesh.append(
            ChatMessage(
                id=response["id"],
                role="assistant",
                content=response.get("content", ""),
                metadata=response.get("metadata"),
            )
        )
