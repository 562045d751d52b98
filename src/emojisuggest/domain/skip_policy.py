"""Skip rules deciding whether an extracted context is worth a model call."""

from __future__ import annotations

from dataclasses import dataclass

import regex

from .errors import require_bool

__all__ = [
    "SkipConditions",
    "should_skip_by_length",
    "should_skip_by_conditions",
    "is_url_like",
    "is_emoji_only",
]

_URL_PATTERN = regex.compile(r"^https?://", regex.IGNORECASE)
_LETTER_OR_NUMBER = regex.compile(r"[\p{L}\p{N}]")


@dataclass(frozen=True, slots=True)
class SkipConditions:
    """Independent toggles evaluated against the trimmed context."""

    skip_if_empty: bool = True
    skip_if_emoji_only: bool = True
    skip_if_url_only: bool = False

    def __post_init__(self) -> None:
        for name in ("skip_if_empty", "skip_if_emoji_only", "skip_if_url_only"):
            require_bool(name, getattr(self, name))


def should_skip_by_length(context: str, min_length: int) -> bool:
    """Return ``True`` when the trimmed context is shorter than ``min_length``."""

    return len(context.strip()) < min_length


def should_skip_by_conditions(context: str, skip: SkipConditions) -> bool:
    # Order: empty, url-only, emoji-only. The first match wins.
    trimmed = context.strip()
    if skip.skip_if_empty and not trimmed:
        return True
    if skip.skip_if_url_only and is_url_like(trimmed):
        return True
    if skip.skip_if_emoji_only and is_emoji_only(trimmed):
        return True
    return False


def is_url_like(text: str) -> bool:
    return _URL_PATTERN.match(text) is not None


def is_emoji_only(text: str) -> bool:
    """Coarse check: non-empty and free of letters and digits.

    Punctuation-only text also qualifies; this is intentionally permissive.
    """

    if not text.strip():
        return False
    return _LETTER_OR_NUMBER.search(text) is None
