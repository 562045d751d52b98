"""Model adapter and prompt construction."""

from .client import AvailabilityState, ClientSettings, EmojiModelClient
from .errors import ModelError, ModelUnavailableError, SuggestionParseError
from .prompts import DEFAULT_PROMPT_CONFIG, PromptConfig, build_emoji_prompt

__all__ = [
    "AvailabilityState",
    "ClientSettings",
    "EmojiModelClient",
    "ModelError",
    "ModelUnavailableError",
    "SuggestionParseError",
    "PromptConfig",
    "DEFAULT_PROMPT_CONFIG",
    "build_emoji_prompt",
]
