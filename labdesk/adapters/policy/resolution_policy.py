from __future__ import annotations
"""Resolution policy.

Allows an action to fire only when its required identifier resolves against
the repository: an order for view/track, a patient for filter/view_patient.
`create_order` needs no identifier.
"""
from typing import List

from labdesk.core.interfaces import PatientRepository, PolicyEngine
from labdesk.core.types import ActionMetadata, PolicyDecision
from labdesk.adapters.classifier.heuristic_classifier import resolve_patient


class ResolutionPolicy(PolicyEngine):
    def __init__(self, repository: PatientRepository) -> None:
        self.repository = repository

    def validate(self, metadata: ActionMetadata) -> PolicyDecision:
        """Return allowed=True when the action's identifier resolves."""
        action = metadata.get("action")
        reasons: List[str] = []
        if action in ("view_order", "track_order"):
            order_id = metadata.get("orderId")
            if not order_id:
                reasons.append("missing_order_id")
            elif self.repository.get_order(order_id) is None:
                reasons.append("order_not_found")
        elif action in ("filter_by_patient", "view_patient"):
            patient_id = metadata.get("patientId")
            if patient_id:
                if self.repository.find_by_id(patient_id) is None:
                    reasons.append("patient_not_found")
            elif resolve_patient(self.repository, metadata.get("patientName")) is None:
                reasons.append("patient_not_found")
        elif action == "create_order":
            pass
        else:
            reasons.append("unknown_action")
        return PolicyDecision(allowed=not reasons, reasons=reasons)
