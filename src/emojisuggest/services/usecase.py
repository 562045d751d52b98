"""Request use-case: joins attempt preparation with the suggestion session.

Skips from either layer share one :data:`SkipReason` vocabulary, so callers
handle guard skips and cooldown/same-context skips the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..ai.prompts import PromptConfig
from ..domain.context import Context, ContextHash
from ..domain.extraction import ContextExtractionSettings
from ..domain.session import RequestSkipped, SuggestionRequestId, SuggestionSession
from ..domain.skip_policy import SkipConditions
from ..domain.suggestion import SuggestionResult
from .orchestrator import AttemptSkip, SuggestionInputSnapshot, prepare_suggestion_attempt

__all__ = [
    "SuggestionRequestBegun",
    "BeginEmojiSuggestionRequestResult",
    "begin_emoji_suggestion_request",
    "apply_emoji_suggestion_result",
]


@dataclass(frozen=True, slots=True)
class SuggestionRequestBegun:
    """A started attempt, with lengths precomputed for telemetry."""

    request_id: SuggestionRequestId
    context: Context
    context_hash: ContextHash
    prompt: str
    context_length: int
    prompt_length: int
    kind: Literal["begun"] = "begun"


BeginEmojiSuggestionRequestResult = RequestSkipped | SuggestionRequestBegun


def begin_emoji_suggestion_request(
    session: SuggestionSession,
    now_ms: float,
    snapshot: SuggestionInputSnapshot,
    settings: ContextExtractionSettings,
    skip: SkipConditions,
    prompt_config: PromptConfig,
    cooldown_ms: float,
) -> BeginEmojiSuggestionRequestResult:
    preparation = prepare_suggestion_attempt(snapshot, settings, skip, prompt_config)
    if isinstance(preparation, AttemptSkip):
        return RequestSkipped(preparation.reason)

    begun = session.begin_request(
        now_ms=now_ms,
        context=preparation.context,
        context_hash=preparation.context_hash,
        cooldown_ms=cooldown_ms,
    )
    if isinstance(begun, RequestSkipped):
        return begun

    return SuggestionRequestBegun(
        request_id=begun.request_id,
        context=preparation.context,
        context_hash=preparation.context_hash,
        prompt=preparation.prompt,
        context_length=len(preparation.context),
        prompt_length=len(preparation.prompt),
    )


def apply_emoji_suggestion_result(
    session: SuggestionSession,
    request_id: SuggestionRequestId,
    suggestion_result: SuggestionResult | None,
) -> bool:
    """Feed a model result back into ``session``; ``False`` means it was discarded."""

    return session.receive_suggestion(request_id, suggestion_result)
