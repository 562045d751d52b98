"""Pure suggestion domain: context, skip rules, session state."""

from .context import Context, ContextHash, create_context, hash_context_djb2
from .extraction import ContextExtractionSettings, ExtractionResult, SentenceContextSettings, extract_context
from .session import RequestBegun, RequestSkipped, SessionState, SkipReason, SuggestionSession
from .skip_policy import SkipConditions, should_skip_by_conditions, should_skip_by_length
from .suggestion import Suggestion, SuggestionResult, create_suggestion_result, parse_suggestion_output

__all__ = [
    "Context",
    "ContextHash",
    "create_context",
    "hash_context_djb2",
    "ContextExtractionSettings",
    "SentenceContextSettings",
    "ExtractionResult",
    "extract_context",
    "SkipConditions",
    "should_skip_by_length",
    "should_skip_by_conditions",
    "Suggestion",
    "SuggestionResult",
    "create_suggestion_result",
    "parse_suggestion_output",
    "SuggestionSession",
    "SessionState",
    "SkipReason",
    "RequestBegun",
    "RequestSkipped",
]
