from __future__ import annotations
"""Intent registry backed by YAML.

Reads `config/intents.yaml` and exposes the intent catalog (descriptions and
button labels) plus the canned help strings shown when no action applies. This
keeps wording in config so it can change without code changes.
"""
from typing import Dict, List
from pathlib import Path
import yaml

from labdesk.core.interfaces import IntentsRegistry
from labdesk.core.types import ActionMetadata, Intent

_DEFAULT_HELP = "I'm here to help with lab test orders, tracking, and results. How can I assist you today?"


class YAMLIntentsRegistry(IntentsRegistry):
    """Loads intents and help text from a YAML file."""
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._intents: List[Intent] = []
        self._help: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        self._intents = data.get("intents", []) or []
        self._help = {str(k): str(v).strip() for k, v in (data.get("help") or {}).items()}

    def intents(self) -> List[Intent]:
        return list(self._intents)

    def help_text(self, topic: str) -> str:
        """Return the canned help string for `topic`, or the general one."""
        return self._help.get(topic) or self._help.get("general") or _DEFAULT_HELP

    def button_label(self, metadata: ActionMetadata) -> str:
        """Render the manual-action button label for a message's metadata."""
        action = metadata.get("action", "")
        intent = next((it for it in self._intents if it.get("action") == action), None)
        label = (intent or {}).get("button_label") or action.replace("_", " ").title()
        return label.replace("{patientName}", metadata.get("patientName") or "Patient")
