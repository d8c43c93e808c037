from __future__ import annotations
"""Session overlay over the fixture repository.

Orders created during a session live in that session's memory only. This
adapter unions them with the fixture data at read time so track and view
lookups see a new order as soon as it is appended. The fixture records are
never mutated.
"""
from typing import List

from labdesk.core.interfaces import PatientRepository, SessionMemoryHandle
from labdesk.core.types import CatalogTest, Patient, TestOrder
from labdesk.adapters.datasource.json_data_source import normalize_order_id, sort_recent


class SessionOverlayRepository(PatientRepository):
    def __init__(self, base: PatientRepository, session: SessionMemoryHandle) -> None:
        self.base = base
        self.session = session

    def _created(self) -> List[TestOrder]:
        return self.session.created_orders()

    def _with_created(self, patient: Patient) -> Patient:
        extra = [o for o in self._created() if o.get("patientId") == patient.get("id")]
        if not extra:
            return patient
        # Newest created orders first, then the fixture orders.
        return {**patient, "orders": list(reversed(extra)) + list(patient.get("orders", []))}

    def patients(self) -> List[Patient]:
        return [self._with_created(p) for p in self.base.patients()]

    def find_by_id(self, patient_id: str) -> Patient | None:
        patient = self.base.find_by_id(patient_id)
        return self._with_created(patient) if patient else None

    def find_by_name_fragment(self, fragment: str) -> List[Patient]:
        return [self._with_created(p) for p in self.base.find_by_name_fragment(fragment)]

    def get_order(self, order_id: str) -> TestOrder | None:
        wanted = normalize_order_id(order_id)
        for order in self._created():
            if normalize_order_id(order.get("id", "")) == wanted:
                return order
        return self.base.get_order(order_id)

    def orders_for_patient(self, patient_id: str) -> List[TestOrder]:
        patient = self.find_by_id(patient_id)
        return list(patient.get("orders", [])) if patient else []

    def list_recent_orders(self, limit: int = 5) -> List[TestOrder]:
        orders = [o for p in self.patients() for o in p.get("orders", [])]
        return sort_recent(orders)[:limit]

    def orders_by_status(self, status: str) -> List[TestOrder]:
        created = [o for o in self._created() if o.get("status") == status]
        return list(reversed(created)) + self.base.orders_by_status(status)

    def test_catalog(self) -> List[CatalogTest]:
        return self.base.test_catalog()
