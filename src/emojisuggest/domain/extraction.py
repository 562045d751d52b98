"""Context extraction rules.

Turns a point-in-time view of an input (full text plus cursor offset) into the
bounded text window sent to the model. Two strategies exist:

* ``characters`` keeps up to ``max_context_length`` characters before the
  cursor, optionally trimmed to start after the first sentence boundary.
* ``sentences`` keeps whole sentences on both sides of the cursor and injects a
  cursor marker so the model knows where the emoji will land.

Everything here is a pure function of its inputs; callers may run it on every
keystroke or selection change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

from .errors import PreferencesError, require_bool, require_int, require_str

__all__ = [
    "ContextMode",
    "CONTEXT_MODES",
    "BOUNDARY_CHARS",
    "DEFAULT_CURSOR_MARKER",
    "SentenceContextSettings",
    "ContextExtractionSettings",
    "SentenceExtractionResult",
    "ExtractionResult",
    "extract_context_before_cursor",
    "extract_context_around_cursor",
    "extract_context",
    "split_into_sentences",
]

ContextMode = Literal["characters", "sentences"]
CONTEXT_MODES: tuple[str, ...] = ("characters", "sentences")
BOUNDARY_CHARS: tuple[str, ...] = (".", "!", "?", "。", "！", "？", "\n")
DEFAULT_CURSOR_MARKER = "[CURSOR]"

MAX_CONTEXT_LENGTH_LIMIT = 1_000
MAX_SENTENCE_COUNT = 10
MAX_CURSOR_MARKER_LENGTH = 20


@dataclass(frozen=True, slots=True)
class SentenceContextSettings:
    """Settings used when ``context_mode`` is ``sentences``."""

    before_sentence_count: int = 0
    after_sentence_count: int = 0
    cursor_marker: str = DEFAULT_CURSOR_MARKER

    def __post_init__(self) -> None:
        for name in ("before_sentence_count", "after_sentence_count"):
            value = getattr(self, name)
            require_int(name, value)
            if value < 0:
                raise PreferencesError(name, "must be >= 0")
            if value > MAX_SENTENCE_COUNT:
                raise PreferencesError(name, f"must be <= {MAX_SENTENCE_COUNT}")
        require_str("cursor_marker", self.cursor_marker)
        if not self.cursor_marker:
            raise PreferencesError("cursor_marker", "must not be empty")
        if len(self.cursor_marker) > MAX_CURSOR_MARKER_LENGTH:
            raise PreferencesError(
                "cursor_marker", f"must be <= {MAX_CURSOR_MARKER_LENGTH} characters"
            )

    def with_overrides(self, **changes: Any) -> SentenceContextSettings:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class ContextExtractionSettings:
    """Validated extraction configuration.

    Instances are immutable; use :meth:`with_overrides` to derive a copy, which
    re-runs validation.
    """

    context_mode: ContextMode = "sentences"
    min_context_length: int = 5
    max_context_length: int = 200
    adjust_to_boundary: bool = True
    sentence_context: SentenceContextSettings = field(default_factory=SentenceContextSettings)

    def __post_init__(self) -> None:
        if self.context_mode not in CONTEXT_MODES:
            raise PreferencesError("context_mode", 'must be "characters" or "sentences"')
        require_int("min_context_length", self.min_context_length)
        require_int("max_context_length", self.max_context_length)
        require_bool("adjust_to_boundary", self.adjust_to_boundary)
        if self.min_context_length <= 0:
            raise PreferencesError("min_context_length", "must be > 0")
        if self.max_context_length < self.min_context_length:
            raise PreferencesError("max_context_length", "must be >= min_context_length")
        if self.max_context_length > MAX_CONTEXT_LENGTH_LIMIT:
            raise PreferencesError("max_context_length", f"must be <= {MAX_CONTEXT_LENGTH_LIMIT}")
        if not isinstance(self.sentence_context, SentenceContextSettings):
            raise PreferencesError("sentence_context", "must be SentenceContextSettings")

    @property
    def is_sentence_mode(self) -> bool:
        return self.context_mode == "sentences"

    def with_overrides(self, **changes: Any) -> ContextExtractionSettings:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class SentenceExtractionResult:
    """Sentence-mode window with and without the cursor marker."""

    context_with_marker: str
    context_without_marker: str


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Unified extraction output.

    ``context_for_prompt`` may contain the cursor marker (sentence mode);
    ``context_for_validation`` never does and is what skip checks and hashing
    operate on.
    """

    context_for_prompt: str
    context_for_validation: str
    is_sentence_mode: bool


def _clamp_cursor(full_text: str, cursor_index: int) -> int:
    return max(0, min(int(cursor_index), len(full_text)))


def _is_boundary_char(char: str) -> bool:
    return char in BOUNDARY_CHARS


def _find_first_boundary_index(text: str) -> int:
    earliest = -1
    for boundary in BOUNDARY_CHARS:
        index = text.find(boundary)
        if index == -1:
            continue
        if earliest == -1 or index < earliest:
            earliest = index
    return earliest


def split_into_sentences(text: str) -> list[str]:
    """Split ``text`` into runs that each end on a boundary character.

    A trailing run without a terminator is returned as a partial sentence.
    """

    sentences: list[str] = []
    current: list[str] = []
    for char in text:
        current.append(char)
        if _is_boundary_char(char):
            sentences.append("".join(current))
            current = []
    if current:
        sentences.append("".join(current))
    return sentences


def _is_complete(sentence: str) -> bool:
    return bool(sentence) and _is_boundary_char(sentence[-1])


def extract_context_before_cursor(
    full_text: str,
    cursor_index: int,
    settings: ContextExtractionSettings,
) -> str:
    """Return the character-mode window ending at the cursor."""

    cursor = _clamp_cursor(full_text, cursor_index)
    start = max(0, cursor - settings.max_context_length)
    window = full_text[start:cursor]

    if settings.adjust_to_boundary:
        boundary_index = _find_first_boundary_index(window)
        if boundary_index != -1 and boundary_index + 1 < len(window):
            window = window[boundary_index + 1 :]

    return window


def extract_context_around_cursor(
    full_text: str,
    cursor_index: int,
    settings: SentenceContextSettings,
) -> SentenceExtractionResult:
    """Return whole sentences around the cursor with the marker injected."""

    cursor = _clamp_cursor(full_text, cursor_index)
    sentences_before = split_into_sentences(full_text[:cursor])
    sentences_after = split_into_sentences(full_text[cursor:])

    before = ""
    if sentences_before:
        last = sentences_before[-1]
        if _is_complete(last):
            start = max(0, len(sentences_before) - settings.before_sentence_count)
            before = "".join(sentences_before[start:])
        else:
            complete = sentences_before[:-1]
            start = max(0, len(complete) - settings.before_sentence_count)
            before = "".join(complete[start:]) + last

    after = ""
    if sentences_after:
        first = sentences_after[0]
        if _is_complete(first):
            end = min(len(sentences_after), settings.after_sentence_count + 1)
            after = "".join(sentences_after[:end])
        else:
            remaining = sentences_after[1:]
            end = min(len(remaining), settings.after_sentence_count)
            after = first + "".join(remaining[:end])

    return SentenceExtractionResult(
        context_with_marker=before + settings.cursor_marker + after,
        context_without_marker=before + after,
    )


def extract_context(
    full_text: str,
    cursor_index: int,
    settings: ContextExtractionSettings,
) -> ExtractionResult:
    """Dispatch to the extraction strategy selected by ``settings``."""

    if settings.is_sentence_mode:
        result = extract_context_around_cursor(full_text, cursor_index, settings.sentence_context)
        return ExtractionResult(
            context_for_prompt=result.context_with_marker,
            context_for_validation=result.context_without_marker,
            is_sentence_mode=True,
        )

    extracted = extract_context_before_cursor(full_text, cursor_index, settings)
    return ExtractionResult(
        context_for_prompt=extracted,
        context_for_validation=extracted,
        is_sentence_mode=False,
    )
