from __future__ import annotations
"""JSON-backed patient repository.

Loads a local JSON file holding the fixture patients (each with nested orders)
and the orderable test catalog. Read-only; intended for demos and tests.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional

from labdesk.core.interfaces import PatientRepository
from labdesk.core.types import CatalogTest, Patient, TestOrder


def normalize_order_id(order_id: str) -> str:
    return (order_id or "").strip().upper()


def sort_recent(orders: List[TestOrder]) -> List[TestOrder]:
    """Most recently ordered first. ISO dates sort lexically; ties keep order."""
    return sorted(orders, key=lambda o: o.get("orderedDate") or "", reverse=True)


class JSONPatientRepository(PatientRepository):
    """Read-only repository backed by a JSON fixture file."""
    def __init__(self, fixtures_path: str | Path) -> None:
        self.fixtures_path = Path(fixtures_path)
        self._patients: Optional[List[Patient]] = None
        self._orders: Dict[str, TestOrder] = {}
        self._catalog: List[CatalogTest] = []

    def _load(self) -> List[Patient]:
        if self._patients is None:
            with self.fixtures_path.open(encoding="utf-8") as f:
                data = json.load(f)
            self._patients = data.get("patients", [])
            self._catalog = data.get("test_catalog", [])
            self._orders = {
                normalize_order_id(o["id"]): o
                for p in self._patients
                for o in p.get("orders", [])
            }
        return self._patients

    def patients(self) -> List[Patient]:
        return list(self._load())

    def find_by_id(self, patient_id: str) -> Patient | None:
        return next((p for p in self._load() if p.get("id") == patient_id), None)

    def find_by_name_fragment(self, fragment: str) -> List[Patient]:
        """Case-insensitive substring match on the full name, in store order."""
        needle = (fragment or "").strip().lower()
        if not needle:
            return []
        return [p for p in self._load() if needle in p.get("name", "").lower()]

    def get_order(self, order_id: str) -> TestOrder | None:
        """Return an order by id (case-insensitive) or None if not found."""
        self._load()
        return self._orders.get(normalize_order_id(order_id))

    def orders_for_patient(self, patient_id: str) -> List[TestOrder]:
        patient = self.find_by_id(patient_id)
        return list(patient.get("orders", [])) if patient else []

    def list_recent_orders(self, limit: int = 5) -> List[TestOrder]:
        orders = [o for p in self._load() for o in p.get("orders", [])]
        return sort_recent(orders)[:limit]

    def orders_by_status(self, status: str) -> List[TestOrder]:
        return [o for p in self._load() for o in p.get("orders", []) if o.get("status") == status]

    def test_catalog(self) -> List[CatalogTest]:
        self._load()
        return list(self._catalog)
