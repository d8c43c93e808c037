from __future__ import annotations
"""Action planner.

Turns a classified intent plus extracted entities into a `Reply`: the text to
show and, when an identifier resolves, the `ActionMetadata` the dashboard uses
to navigate. Lookups that miss produce a clarifying message and never raise.
"""
from typing import List, Optional

from labdesk.core.interfaces import IntentsRegistry, PatientRepository, Planner
from labdesk.core.types import (
    ActionMetadata,
    ExtractedEntities,
    IntentId,
    Patient,
    Reply,
    TestOrder,
)
from labdesk.adapters.classifier.heuristic_classifier import help_topic, normalize, resolve_patient
from labdesk.adapters.datasource.json_data_source import sort_recent

RESULT_WORDS = ("result", "lab", "findings", "report", "data", "values", "numbers", "outcome")
ORDER_WORDS = (
    "order", "test", "lab work", "requisition", "panel", "diagnostic",
    "specimen", "sample", "history", "record",
)


def _latest(orders: List[TestOrder]) -> Optional[TestOrder]:
    ordered = sort_recent(orders)
    return ordered[0] if ordered else None


def _latest_completed(orders: List[TestOrder]) -> Optional[TestOrder]:
    done = [o for o in orders if o.get("status") == "Completed" and o.get("results")]
    done.sort(key=lambda o: o.get("lastUpdated") or "", reverse=True)
    return done[0] if done else None


class ActionPlanner(Planner):
    def __init__(self, repository: PatientRepository, intents: IntentsRegistry) -> None:
        self.repository = repository
        self.intents = intents

    def plan(self, intent: IntentId, entities: ExtractedEntities, text: str) -> Reply:
        """Dispatch on the intent; each branch resolves its own identifiers."""
        if intent == "track_order":
            return self._track(entities)
        if intent == "create_order":
            return self._create(entities)
        if intent == "view_order":
            return self._view(entities)
        if intent == "filter_by_patient":
            return self._filter(entities, text)
        return self._fallback(entities, text)

    # --- Branches ---

    def _patient_name_for(self, order: TestOrder) -> Optional[str]:
        patient = self.repository.find_by_id(order.get("patientId", ""))
        return patient.get("name") if patient else None

    def _track(self, entities: ExtractedEntities) -> Reply:
        order_id = entities.get("order_id")
        if order_id:
            order = self.repository.get_order(order_id)
            if not order:
                return Reply(
                    content=(
                        f'I couldn\'t find an order with ID "{order_id}" to track. '
                        "Please check the order ID and try again."
                    ),
                    metadata=ActionMetadata(action="track_order", orderId=order_id, autoTrigger=True),
                )
            patient_name = self._patient_name_for(order)
            metadata = ActionMetadata(action="track_order", orderId=order["id"], autoTrigger=True)
            if patient_name:
                metadata["patientName"] = patient_name
            return Reply(
                content=(
                    f"I'll show you the tracking information for order {order['id']} "
                    f"({order.get('testName')}) for {patient_name or 'Unknown Patient'}."
                ),
                metadata=metadata,
            )

        name = entities.get("patient_name")
        if name:
            patient = resolve_patient(self.repository, name)
            if not patient:
                return Reply(
                    content=(
                        f'I couldn\'t find a patient named "{name}" to check order tracking. '
                        "Please provide more information."
                    )
                )
            latest = _latest(patient.get("orders", []))
            if not latest:
                return Reply(content=f"{patient['name']} doesn't have any orders to track.")
            return Reply(
                content=(
                    f"I'll show you the tracking information for {patient['name']}'s most recent order "
                    f"({latest.get('testName')}, Order ID: {latest['id']})."
                ),
                metadata=ActionMetadata(
                    action="track_order",
                    orderId=latest["id"],
                    patientName=patient["name"],
                    autoTrigger=True,
                ),
            )

        return Reply(
            content=(
                "I can help you track an order. Please provide an order ID (like O5001) "
                "or a patient name to check their most recent order."
            )
        )

    def _create(self, entities: ExtractedEntities) -> Reply:
        metadata = ActionMetadata(action="create_order", autoTrigger=True)
        patient = resolve_patient(self.repository, entities.get("patient_name"))
        if patient:
            metadata["patientId"] = patient["id"]
            metadata["patientName"] = patient["name"]
            content = f"I'll help you create a new order for {patient['name']}. Opening the order form."
        else:
            content = (
                "I'd be happy to help you create a new order. "
                "You can use our order form to select a patient and test type."
            )
        return Reply(content=content, metadata=metadata)

    def _view(self, entities: ExtractedEntities) -> Reply:
        order_id = entities.get("order_id") or ""
        order = self.repository.get_order(order_id)
        if not order:
            return Reply(
                content=(
                    f'I couldn\'t find an order with ID "{order_id}" in our system. '
                    "Please check the order ID and try again."
                )
            )
        patient_name = self._patient_name_for(order) or "Unknown Patient"
        return Reply(
            content=(
                f"I found order {order['id']}. This is a {order.get('testName')} test for "
                f"{patient_name} (ID: {order.get('patientId')}). The current status is {order.get('status')}."
            ),
            metadata=ActionMetadata(action="view_order", orderId=order["id"], autoTrigger=True),
        )

    def _filter(self, entities: ExtractedEntities, text: str) -> Reply:
        patient = resolve_patient(self.repository, entities.get("patient_name"))
        if not patient:
            # The classifier only picks this intent for a resolvable name.
            return self._fallback(entities, text)

        orders = patient.get("orders", [])
        t = normalize(text)
        intro = f"I found information for patient {patient['name']} (ID: {patient['id']}). "
        filter_meta = ActionMetadata(
            action="filter_by_patient",
            patientId=patient["id"],
            patientName=patient["name"],
            autoTrigger=True,
        )

        if any(w in t for w in RESULT_WORDS):
            return self._results_reply(patient, orders, intro, filter_meta)

        if any(w in t for w in ORDER_WORDS):
            latest = _latest(orders)
            if latest:
                content = intro + (
                    f"{patient['name']} has {len(orders)} test orders. The most recent is a "
                    f"{latest.get('testName')} ordered on {latest.get('orderedDate')} "
                    f"with status \"{latest.get('status')}\"."
                )
            else:
                content = intro + f"{patient['name']} doesn't have any test orders in the system."
            return Reply(content=content, metadata=filter_meta)

        content = (
            f"Patient: {patient['name']}\n"
            f"ID: {patient['id']}\n"
            f"DOB: {patient.get('dateOfBirth')}\n"
            f"Gender: {patient.get('gender')}\n"
            f"Contact: {patient.get('email')}\n\n"
            f"This patient has {len(orders)} test orders in the system."
        )
        if orders:
            content += " I'll show you their orders now."
        return Reply(content=content, metadata=filter_meta)

    def _results_reply(
        self, patient: Patient, orders: List[TestOrder], intro: str, filter_meta: ActionMetadata
    ) -> Reply:
        completed = _latest_completed(orders)
        if completed:
            content = intro + (
                f"The most recent completed test is {completed.get('testName')} from "
                f"{completed.get('orderedDate')}. The status is {completed.get('status')}."
            )
            summary = (completed.get("results") or {}).get("resultSummary")
            if summary:
                content += f" Summary: {summary}"
            return Reply(
                content=content,
                metadata=ActionMetadata(action="view_order", orderId=completed["id"], autoTrigger=True),
            )

        content = intro + f"{patient['name']} has {len(orders)} test orders, but none have completed results yet."
        latest = _latest(orders)
        if not latest:
            return Reply(content=content, metadata=filter_meta)
        content += f" Would you like to see details of their most recent order ({latest.get('testName')})?"
        return Reply(
            content=content,
            metadata=ActionMetadata(action="view_order", orderId=latest["id"], autoTrigger=False),
        )

    def _fallback(self, entities: ExtractedEntities, text: str) -> Reply:
        name = entities.get("patient_name")
        if name:
            return Reply(
                content=(
                    f'I couldn\'t find a patient named "{name}" in our records. '
                    "Please check the spelling or provide more information."
                )
            )
        topic = help_topic(text)
        return Reply(content=self.intents.help_text(topic), topic=topic)
