from __future__ import annotations
"""Exceptions raised by the dashboard core.

Lookups that miss never raise; they surface as reply text. Exceptions are kept
for configuration problems and invalid order submissions.
"""


class ProviderUnavailableError(RuntimeError):
    """The text-generation provider is not configured or cannot be reached."""


class OrderValidationError(ValueError):
    """An order submission references unknown data or is incomplete."""

    def __init__(self, message: str, code: str = "INVALID_ORDER") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
