"""Attempt orchestration: should we ask the model, and with what prompt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..ai.prompts import PromptConfig, build_emoji_prompt
from ..domain.context import Context, ContextHash, create_context, hash_context_djb2
from ..domain.extraction import ContextExtractionSettings, extract_context
from ..domain.session import SkipReason
from ..domain.skip_policy import SkipConditions, should_skip_by_conditions, should_skip_by_length

__all__ = [
    "SuggestionInputSnapshot",
    "AttemptSkip",
    "AttemptReady",
    "SuggestionAttemptPreparation",
    "prepare_suggestion_attempt",
]


@dataclass(frozen=True, slots=True)
class SuggestionInputSnapshot:
    """Point-in-time view of an input element supplied by the host layer."""

    is_supported_input: bool
    has_focus: bool
    is_composing: bool
    has_collapsed_selection: bool
    full_text: str
    cursor_index: int


@dataclass(frozen=True, slots=True)
class AttemptSkip:
    reason: SkipReason
    kind: Literal["skip"] = "skip"


@dataclass(frozen=True, slots=True)
class AttemptReady:
    context: Context
    context_hash: ContextHash
    prompt: str
    kind: Literal["ready"] = "ready"


SuggestionAttemptPreparation = AttemptSkip | AttemptReady


def prepare_suggestion_attempt(
    snapshot: SuggestionInputSnapshot,
    settings: ContextExtractionSettings,
    skip: SkipConditions,
    prompt_config: PromptConfig,
) -> SuggestionAttemptPreparation:
    """Run the guard chain over ``snapshot``.

    Guards run in a fixed order (supported, focused, not composing, collapsed
    selection, length, content conditions); the first failing guard names the
    skip reason.
    """

    if not snapshot.is_supported_input:
        return AttemptSkip("not-supported")
    if not snapshot.has_focus:
        return AttemptSkip("not-focused")
    if snapshot.is_composing:
        return AttemptSkip("composing")
    if not snapshot.has_collapsed_selection:
        return AttemptSkip("selection")

    extraction = extract_context(snapshot.full_text, snapshot.cursor_index, settings)
    context = create_context(extraction.context_for_validation)

    if should_skip_by_length(context, settings.min_context_length):
        return AttemptSkip("too-short")
    if should_skip_by_conditions(context, skip):
        return AttemptSkip("conditions")

    prompt = build_emoji_prompt(
        extraction.context_for_prompt,
        prompt_config,
        extraction.is_sentence_mode,
        cursor_marker=settings.sentence_context.cursor_marker,
    )
    return AttemptReady(context=context, context_hash=hash_context_djb2(context), prompt=prompt)
