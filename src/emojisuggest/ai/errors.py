"""Errors raised by the model adapter."""

from __future__ import annotations

__all__ = ["ModelError", "ModelUnavailableError", "SuggestionParseError"]


class ModelError(RuntimeError):
    """Base class for model adapter failures."""


class ModelUnavailableError(ModelError):
    """Raised when the configured model endpoint cannot serve requests."""


class SuggestionParseError(ModelError):
    """Raised when model output is not a single emoji suggestion."""

    def __init__(self, raw_output: str) -> None:
        super().__init__(f"Model output is not a single emoji ({len(raw_output)} chars)")
        self.raw_output = raw_output
