from __future__ import annotations
"""Runtime settings read from the environment.

Entry points call `load_dotenv()` first so a local `.env` file can supply the
same variables.

Environment:
  - OPENAI_API_KEY: enables the OpenAI phrasing path (optional).
  - OPENAI_MODEL: defaults to `gpt-4o-mini`.
  - LABDESK_LLM_TIMEOUT: seconds before the provider counts as unavailable.
  - LABDESK_FIXTURES / LABDESK_INTENTS: override the bundled data files.
  - LABDESK_MAX_MESSAGES: transcript length kept per session.
"""
import os
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]

DEFAULT_FIXTURES = ROOT / "data" / "patients.json"
DEFAULT_INTENTS = ROOT / "config" / "intents.yaml"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout: float = 10.0
    fixtures_path: Path = DEFAULT_FIXTURES
    intents_path: Path = DEFAULT_INTENTS
    max_messages: int = 20

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, keeping defaults for
        anything unset or unparsable."""
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
            llm_timeout=_float_env("LABDESK_LLM_TIMEOUT", 10.0),
            fixtures_path=Path(os.getenv("LABDESK_FIXTURES") or DEFAULT_FIXTURES),
            intents_path=Path(os.getenv("LABDESK_INTENTS") or DEFAULT_INTENTS),
            max_messages=_int_env("LABDESK_MAX_MESSAGES", 20),
        )
