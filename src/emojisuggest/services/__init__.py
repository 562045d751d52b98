"""Application services: attempt orchestration, controller, settings."""

from .controller import SuggestionController
from .events import EventBus
from .orchestrator import SuggestionInputSnapshot, prepare_suggestion_attempt
from .settings import Settings, SettingsStore
from .usecase import apply_emoji_suggestion_result, begin_emoji_suggestion_request

__all__ = [
    "SuggestionController",
    "EventBus",
    "SuggestionInputSnapshot",
    "prepare_suggestion_attempt",
    "Settings",
    "SettingsStore",
    "begin_emoji_suggestion_request",
    "apply_emoji_suggestion_result",
]
