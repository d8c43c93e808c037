from __future__ import annotations
"""Order tracking tool.

Derives the kit → lab → results timeline shown on the tracking view from an
order's status. Dates for intermediate steps are estimates offset from the
order date; only the final step uses a recorded date. Pure logic, no I/O.
"""
from datetime import date, timedelta
from typing import Callable, List, Optional

from labdesk.core.interfaces import PatientRepository
from labdesk.core.types import TestOrder, TrackingStep

# (id, label, description, days after orderedDate, statuses that complete it)
_STEPS = [
    ("ordered", "Order Placed", "Order placed by {orderedBy}", 0, None),
    ("kit_shipped", "Kit Shipped", "Test kit has been shipped to the patient", 2,
     ("Kit Shipped", "Kit Delivered", "Sample Received", "In Progress", "Completed")),
    ("kit_delivered", "Kit Delivered", "Test kit has been delivered to the patient", 5,
     ("Kit Delivered", "Sample Received", "In Progress", "Completed")),
    ("sample_received", "Sample Received", "Sample has been received by the lab", 8,
     ("Sample Received", "In Progress", "Completed")),
    ("in_progress", "Testing In Progress", "Lab is processing the sample", 10,
     ("In Progress", "Completed")),
    ("completed", "Results Ready", "Test results are ready to view", None,
     ("Completed",)),
]


def _offset(ordered: str, days: int) -> Optional[str]:
    try:
        return (date.fromisoformat(ordered[:10]) + timedelta(days=days)).isoformat()
    except (TypeError, ValueError):
        return None


def build_tracking_steps(order: TestOrder) -> List[TrackingStep]:
    """Return the six tracking steps with completion flags and dates."""
    status = order.get("status", "")
    ordered = order.get("orderedDate", "")
    steps: List[TrackingStep] = []
    for step_id, label, description, days, done_by in _STEPS:
        completed = True if done_by is None else status in done_by
        if not completed:
            when = None
        elif days is None:
            when = order.get("lastUpdated")
        else:
            when = _offset(ordered, days)
        steps.append(
            TrackingStep(
                id=step_id,
                label=label,
                date=when,
                completed=completed,
                description=description.format(orderedBy=order.get("orderedBy") or "your clinician"),
            )
        )
    return steps


def current_step_index(steps: List[TrackingStep]) -> int:
    """Index of the last completed step (the one the order is "at")."""
    pending = next((i for i, s in enumerate(steps) if not s["completed"]), None)
    if pending is None:
        return len(steps) - 1
    return max(pending - 1, 0)


def make_track_order(repository: PatientRepository) -> Callable[[str], dict]:
    """Factory returning a lookup bound to the provided repository."""
    def _handler(order_id: str) -> dict:
        if not order_id:
            return {"ok": False, "error": "missing order_id"}
        order = repository.get_order(order_id)
        if not order:
            return {"ok": False, "error": "order_not_found"}
        steps = build_tracking_steps(order)
        return {"ok": True, "data": {"order": order, "steps": steps, "current": current_step_index(steps)}}

    return _handler
