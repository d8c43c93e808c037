from __future__ import annotations
"""Action dispatcher.

Maintains an in-process registry of navigation callbacks keyed by action name
and fires them for chat messages. Auto-triggered actions fire at most once per
message id; everything else waits for the user to press the message's button.
"""
from typing import Callable, Dict, Optional

from labdesk.core.interfaces import ActionExecutor, PatientRepository, PolicyEngine, SessionMemoryHandle
from labdesk.core.types import ActionMetadata, DispatchOutcome


class ActionDispatcher(ActionExecutor):
    def __init__(
        self,
        repository: PatientRepository,
        policy: PolicyEngine,
        session: Optional[SessionMemoryHandle] = None,
    ) -> None:
        self.repository = repository
        self.policy = policy
        self.session = session
        self._handlers: Dict[str, Callable[..., None]] = {}
        self._dispatched: set[str] = set()

    def register(self, action: str, handler: Callable[..., None]) -> None:
        self._handlers[action] = handler

    def _already(self, message_id: str) -> bool:
        if self.session is not None:
            return message_id in self.session.dispatched()
        return message_id in self._dispatched

    def _mark(self, message_id: str) -> None:
        if self.session is not None:
            self.session.mark_dispatched(message_id)
        else:
            self._dispatched.add(message_id)

    def dispatch(self, message_id: str, metadata: Optional[ActionMetadata]) -> DispatchOutcome:
        """Auto-fire the message's action when allowed.

        Returns `manual` when the UI should render a button instead, and
        `not_found` when a tracked order id does not resolve (the UI shows an
        error state rather than navigating).
        """
        if not metadata or not metadata.get("action"):
            return DispatchOutcome(status="no_action", action=None, reasons=[])
        action = metadata["action"]
        if self._already(message_id):
            return DispatchOutcome(status="already_dispatched", action=action, reasons=[])

        decision = self.policy.validate(metadata)
        if not decision.get("allowed", False):
            status = "not_found" if metadata.get("autoTrigger") else "manual"
            return DispatchOutcome(status=status, action=action, reasons=decision.get("reasons", []))
        if not metadata.get("autoTrigger"):
            return DispatchOutcome(status="manual", action=action, reasons=[])

        self._mark(message_id)
        self._invoke(metadata)
        return DispatchOutcome(status="dispatched", action=action, reasons=[])

    def trigger(self, metadata: ActionMetadata) -> bool:
        """Manual button path: fire the callback if the identifier resolves."""
        if not metadata or not self.policy.validate(metadata).get("allowed", False):
            return False
        return self._invoke(metadata)

    def _invoke(self, metadata: ActionMetadata) -> bool:
        action = metadata.get("action", "")
        fn = self._handlers.get(action)
        if not fn:
            return False
        if action == "view_order":
            fn(self.repository.get_order(metadata["orderId"]))
        elif action == "track_order":
            fn(metadata["orderId"], metadata.get("patientName"))
        elif action == "filter_by_patient":
            fn(metadata.get("patientName"))
        elif action == "create_order":
            fn(metadata.get("patientId"))
        elif action == "view_patient":
            fn(metadata.get("patientId"))
        else:
            return False
        return True
