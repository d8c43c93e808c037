from __future__ import annotations
"""Shared type definitions used across the dashboard.

The project favors simple, explicit `TypedDict` structures for message passing
between components. Fixture records keep the camelCase keys of the JSON file
and of the chat wire format so they can be serialized without translation.
"""
from typing import Any, Dict, List, Literal, Optional, TypedDict


OrderStatus = Literal[
    "Pending",
    "Kit Shipped",
    "Kit Delivered",
    "Sample Received",
    "In Progress",
    "Completed",
    "Cancelled",
]

ActionName = Literal[
    "view_order",
    "view_patient",
    "filter_by_patient",
    "create_order",
    "track_order",
]

IntentId = Literal[
    "track_order",
    "create_order",
    "view_order",
    "filter_by_patient",
    "none",
]

HelpTopic = Literal["orders", "patients", "results", "general"]


class TestResult(TypedDict, total=False):
    id: str
    orderId: str
    completedDate: str
    resultSummary: str
    resultDetails: Dict[str, Any]
    interpretation: str
    flagged: bool
    recommendedFollowUp: str


class TestOrder(TypedDict, total=False):
    id: str
    patientId: str
    testName: str
    testType: str
    orderedBy: str
    orderedDate: str
    status: OrderStatus
    lastUpdated: str
    results: TestResult
    notes: str


class Patient(TypedDict, total=False):
    id: str
    name: str
    dateOfBirth: str
    gender: Literal["Male", "Female", "Other"]
    email: str
    phone: str
    address: str
    medicalHistory: List[str]
    orders: List[TestOrder]


class CatalogTest(TypedDict):
    id: str
    name: str
    code: str
    price: float


class ExtractedEntities(TypedDict):
    order_id: Optional[str]
    patient_name: Optional[str]


class ActionMetadata(TypedDict, total=False):
    action: ActionName
    orderId: str
    patientId: str
    patientName: str
    autoTrigger: bool


class Reply(TypedDict, total=False):
    content: str
    metadata: Optional[ActionMetadata]
    topic: HelpTopic


class Interaction(TypedDict, total=False):
    id: str
    text: str
    history: List[Dict[str, Any]]
    context: Dict[str, Any]


class ChatMessage(TypedDict, total=False):
    id: str
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: str
    metadata: Optional[ActionMetadata]


class ChatResponse(TypedDict, total=False):
    id: str
    role: Literal["assistant"]
    content: str
    metadata: Optional[ActionMetadata]


class Intent(TypedDict, total=False):
    id: str
    description: str
    action: str
    required_params: List[str]
    button_label: str


class PolicyDecision(TypedDict):
    allowed: bool
    reasons: List[str]


class TrackingStep(TypedDict):
    id: str
    label: str
    date: Optional[str]
    completed: bool
    description: str


class TelemetryEvent(TypedDict, total=False):
    timestamp: str
    interaction_id: str
    session_id: str
    stage: Literal[
        "received",
        "entities_extracted",
        "intent_classified",
        "resolved",
        "provider_fallback",
        "respond",
    ]
    level: Literal["info", "warn", "error"]
    payload: Dict[str, Any]


DispatchStatus = Literal[
    "dispatched",
    "already_dispatched",
    "manual",
    "not_found",
    "no_action",
]


class DispatchOutcome(TypedDict, total=False):
    status: DispatchStatus
    action: Optional[str]
    reasons: List[str]
