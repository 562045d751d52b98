"""Suggestion value objects and model output parsing."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, NewType

import regex

__all__ = [
    "Suggestion",
    "SuggestionResult",
    "DEFAULT_REASON",
    "create_suggestion",
    "create_suggestion_result",
    "is_single_emoji",
    "parse_suggestion_from_model_output",
    "parse_suggestion_output",
]

LOGGER = logging.getLogger(__name__)

Suggestion = NewType("Suggestion", str)

DEFAULT_REASON = "(no reason provided)"

_GRAPHEME = regex.compile(r"\X")
_WHITESPACE = regex.compile(r"\s")
_LETTER_OR_NUMBER = regex.compile(r"[\p{L}\p{N}]")
_PICTOGRAPHIC = regex.compile(r"\p{Extended_Pictographic}")


@dataclass(frozen=True, slots=True)
class SuggestionResult:
    """An emoji suggestion paired with the model's short explanation."""

    emoji: Suggestion
    reason: str = DEFAULT_REASON


def create_suggestion(emoji: str) -> Suggestion:
    return Suggestion(emoji)


def create_suggestion_result(emoji: str, reason: str | None = None) -> SuggestionResult:
    """Build a result, substituting :data:`DEFAULT_REASON` for blank reasons."""

    cleaned = (reason or "").strip()
    return SuggestionResult(emoji=create_suggestion(emoji), reason=cleaned or DEFAULT_REASON)


def is_single_emoji(candidate: str) -> bool:
    """Return ``True`` if ``candidate`` is exactly one pictographic grapheme."""

    if not candidate:
        return False
    if len(_GRAPHEME.findall(candidate)) != 1:
        return False
    if _WHITESPACE.search(candidate):
        return False
    if _LETTER_OR_NUMBER.search(candidate):
        return False
    return _PICTOGRAPHIC.search(candidate) is not None


def parse_suggestion_from_model_output(output: str) -> Suggestion | None:
    """Interpret ``output`` as a bare emoji, returning ``None`` when it is not one."""

    trimmed = (output or "").strip()
    if not is_single_emoji(trimmed):
        return None
    return create_suggestion(trimmed)


def parse_suggestion_output(output: str) -> SuggestionResult | None:
    """Parse raw model output into a :class:`SuggestionResult`.

    JSON objects of the form ``{"emoji": ..., "reason": ...}`` are tried first;
    anything else is treated as a bare emoji.
    """

    trimmed = (output or "").strip()
    if not trimmed:
        return None

    payload = _try_parse_json(trimmed)
    if isinstance(payload, dict):
        emoji = payload.get("emoji")
        if not isinstance(emoji, str):
            LOGGER.debug("Model JSON output did not include an emoji field")
            return None
        suggestion = parse_suggestion_from_model_output(emoji)
        if suggestion is None:
            return None
        reason = payload.get("reason")
        return create_suggestion_result(suggestion, reason if isinstance(reason, str) else None)
    if isinstance(payload, str):
        trimmed = payload.strip()

    suggestion = parse_suggestion_from_model_output(trimmed)
    if suggestion is None:
        return None
    return create_suggestion_result(suggestion)


def _try_parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None
