"""Error types raised by the suggestion domain."""

from __future__ import annotations

from typing import Any

__all__ = ["PreferencesError", "require_bool", "require_int", "require_number", "require_str"]


class PreferencesError(ValueError):
    """Raised when a configuration value is outside its allowed range.

    Configuration errors surface at construction time so invalid settings
    never reach the suggestion session.
    """

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name


def require_bool(field_name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise PreferencesError(field_name, f"must be a boolean, got {type(value).__name__}")


def require_int(field_name: str, value: Any) -> None:
    # bool is an int subclass but never a valid count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise PreferencesError(field_name, f"must be an integer, got {type(value).__name__}")


def require_number(field_name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PreferencesError(field_name, f"must be a number, got {type(value).__name__}")


def require_str(field_name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise PreferencesError(field_name, f"must be a string, got {type(value).__name__}")
