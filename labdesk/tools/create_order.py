from __future__ import annotations
"""Order creation tool.

Validates a new-order submission, assigns a fresh `O####` id and appends the
order to the session's overlay before returning, so the id is immediately
usable by track and view lookups. Fixture data is never modified.
"""
import random
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from labdesk.core.errors import OrderValidationError
from labdesk.core.interfaces import PatientRepository, SessionMemoryHandle
from labdesk.core.types import CatalogTest, TestOrder
from labdesk.adapters.memory.in_memory import now_iso

PHLEBOTOMY_OPTIONS = ("mobile", "in_office", "draw_center")
PHLEBOTOMY_TYPES = ("single", "hourly")
BILLING_PARTIES = ("clinician", "patient")

DEFAULT_ORDERED_BY = "Dr. Sarah Reynolds"


@dataclass
class OrderRequest:
    patient_id: str
    test_ids: List[str]
    phlebotomy_option: str = "draw_center"
    phlebotomy_type: str = "single"
    billed_to: str = "clinician"
    ordered_by: str = DEFAULT_ORDERED_BY
    notes: str = ""


@dataclass
class CreatedOrder:
    order: TestOrder
    tests: List[CatalogTest] = field(default_factory=list)
    total: float = 0.0
    phlebotomy_option: str = "draw_center"
    phlebotomy_type: str = "single"
    billed_to: str = "clinician"
    created_at: str = ""

    @property
    def id(self) -> str:
        return self.order["id"]


def _validate(request: OrderRequest, repository: PatientRepository) -> List[CatalogTest]:
    if repository.find_by_id(request.patient_id) is None:
        raise OrderValidationError(f"Unknown patient '{request.patient_id}'", code="PATIENT_NOT_FOUND")
    if not request.test_ids:
        raise OrderValidationError("Select at least one test", code="NO_TESTS")
    catalog = {t["id"]: t for t in repository.test_catalog()}
    unknown = [t for t in request.test_ids if t not in catalog]
    if unknown:
        raise OrderValidationError(f"Unknown test id(s): {', '.join(unknown)}", code="TEST_NOT_FOUND")
    if request.phlebotomy_option not in PHLEBOTOMY_OPTIONS:
        raise OrderValidationError(f"Unknown phlebotomy option '{request.phlebotomy_option}'")
    if request.phlebotomy_type not in PHLEBOTOMY_TYPES:
        raise OrderValidationError(f"Unknown phlebotomy type '{request.phlebotomy_type}'")
    if request.billed_to not in BILLING_PARTIES:
        raise OrderValidationError(f"Unknown billing party '{request.billed_to}'")
    return [catalog[t] for t in request.test_ids]


def generate_order_id(repository: PatientRepository, rng: Optional[random.Random] = None) -> str:
    """Draw `O5000`-`O9999` ids until one is not already taken."""
    rng = rng or random.Random()
    for _ in range(1000):
        candidate = f"O{rng.randint(5000, 9999)}"
        if repository.get_order(candidate) is None:
            return candidate
    raise OrderValidationError("No free order ids left", code="ID_EXHAUSTED")


def create_order(
    request: OrderRequest,
    repository: PatientRepository,
    session: SessionMemoryHandle,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> CreatedOrder:
    """Validate, assign an id, and append the order to the session overlay.

    `repository` should already include the session overlay so ids created
    earlier in the same session are not reused.
    """
    tests = _validate(request, repository)
    order_id = generate_order_id(repository, rng)
    day = (today or date.today()).isoformat()
    order = TestOrder(
        id=order_id,
        patientId=request.patient_id,
        testName=", ".join(t["name"] for t in tests),
        testType="Blood",
        orderedBy=request.ordered_by,
        orderedDate=day,
        status="Pending",
        lastUpdated=day,
    )
    if request.notes:
        order["notes"] = request.notes
    session.add_created_order(order)
    return CreatedOrder(
        order=order,
        tests=tests,
        total=round(sum(t["price"] for t in tests), 2),
        phlebotomy_option=request.phlebotomy_option,
        phlebotomy_type=request.phlebotomy_type,
        billed_to=request.billed_to,
        created_at=now_iso(),
    )
