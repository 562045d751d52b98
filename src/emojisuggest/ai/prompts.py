"""Prompt templates for emoji suggestions.

Builds the single prompt string handed to the model adapter. The prompt is
assembled from four parts, in order:

1. the system instruction block (``PromptConfig.system_prompt_template``),
2. an optional few-shot block,
3. ``"Text:\\n"`` followed by the extracted context,
4. a closing instruction that depends on whether the context carries a
   cursor marker.

Few-shot examples for sentence mode are picked by where the marker sits in the
context (beginning, middle, end) so the examples stay short and relevant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal, Mapping, Sequence

from ..domain.extraction import DEFAULT_CURSOR_MARKER
from ..domain.preferences import UserPreferences

__all__ = [
    "CursorPosition",
    "PromptConfig",
    "DEFAULT_SYSTEM_PROMPT",
    "DEFAULT_PROMPT_CONFIG",
    "CHARACTER_MODE_EXAMPLES",
    "SENTENCE_MODE_EXAMPLES",
    "build_emoji_prompt",
    "classify_cursor_position",
    "select_examples",
    "prompt_config_from_preferences",
]

CursorPosition = Literal["beginning", "mid", "end"]

DEFAULT_SYSTEM_PROMPT = "\n".join(
    [
        "You are an assistant that returns exactly one emoji. Output must be a single emoji character and nothing else.",
        "If the text mentions a specific object, animal, food, activity, or place, prefer the emoji that directly represents it.",
        "If the text is a single word or short phrase, pick the emoji that most directly represents it.",
        "If no emoji directly represents the concept, pick the closest metaphorical match.",
        "Only fall back to a general sentiment/mood emoji when nothing specific is mentioned.",
    ]
)

CHARACTER_MODE_EXAMPLES: tuple[tuple[str, str], ...] = (
    ("I am playing guitar with friends", "🎸"),
    ("I am so happy today", "😊"),
    ("pizza", "🍕"),
    ("debugging the code", "🐛"),
    ("shipped to production", "📦"),
    ("happy birthday", "🎂"),
    ("meeting at 3pm", "📅"),
    ("working from home", "🏠"),
)

SENTENCE_MODE_EXAMPLES: Mapping[CursorPosition, tuple[tuple[str, str], ...]] = {
    "beginning": (
        ("{marker} Good morning everyone!", "☀️"),
        ("{marker} Congratulations on the new job.", "🎉"),
        ("{marker} Reminder: rent is due tomorrow.", "📅"),
    ),
    "mid": (
        ("We went hiking {marker} and saw a waterfall.", "🥾"),
        ("The cake {marker} was delicious.", "🎂"),
        ("I finally fixed the bug {marker} after three hours.", "🐛"),
    ),
    "end": (
        ("Just landed in Tokyo {marker}", "✈️"),
        ("Our team won the final {marker}", "🏆"),
        ("Time for a coffee break {marker}", "☕"),
    ),
}

_EXAMPLE_INTRO = "Examples:"
_REASON_INSTRUCTION = (
    'Respond with JSON only: {"emoji": "<one emoji>", "reason": "<one short English sentence>"}.'
)


@dataclass(frozen=True, slots=True)
class PromptConfig:
    """Model tuning and prompt wording configuration."""

    system_prompt_template: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = 10
    temperature: float = 0.7
    top_k: int = 8
    output_language: Literal["en", "es", "ja"] | None = "en"
    include_examples: bool = True
    include_reason: bool = False

    def with_overrides(self, **changes: Any) -> PromptConfig:
        return replace(self, **changes)


DEFAULT_PROMPT_CONFIG = PromptConfig()


def classify_cursor_position(context: str, cursor_marker: str = DEFAULT_CURSOR_MARKER) -> CursorPosition:
    """Classify where ``cursor_marker`` sits within the trimmed ``context``."""

    trimmed = context.strip()
    if trimmed.startswith(cursor_marker):
        return "beginning"
    if trimmed.endswith(cursor_marker):
        return "end"
    return "mid"


def select_examples(
    context: str,
    is_sentence_mode: bool,
    cursor_marker: str = DEFAULT_CURSOR_MARKER,
) -> Sequence[tuple[str, str]]:
    if not is_sentence_mode:
        return CHARACTER_MODE_EXAMPLES
    position = classify_cursor_position(context, cursor_marker)
    return tuple(
        (text.format(marker=cursor_marker), emoji) for text, emoji in SENTENCE_MODE_EXAMPLES[position]
    )


def _format_examples(examples: Sequence[tuple[str, str]]) -> str:
    lines = [_EXAMPLE_INTRO]
    lines.extend(f'"{text}" → {emoji}' for text, emoji in examples)
    return "\n".join(lines)


def _closing_instruction(is_sentence_mode: bool, cursor_marker: str, include_reason: bool) -> str:
    if is_sentence_mode:
        instruction = (
            f"Return exactly one emoji that best fits the position marked by {cursor_marker}. "
            "Prefer a specific emoji over a generic sentiment emoji."
        )
    else:
        instruction = (
            "Return exactly one emoji that best represents the text. "
            "Prefer a specific emoji over a generic sentiment emoji."
        )
    if include_reason:
        instruction = f"{instruction}\n{_REASON_INSTRUCTION}"
    return instruction


def build_emoji_prompt(
    context: str,
    config: PromptConfig = DEFAULT_PROMPT_CONFIG,
    is_sentence_mode: bool = False,
    *,
    cursor_marker: str = DEFAULT_CURSOR_MARKER,
) -> str:
    """Render the model prompt for ``context``.

    Args:
        context: Extracted context; contains ``cursor_marker`` in sentence mode.
        config: Prompt wording and tuning configuration.
        is_sentence_mode: Whether ``context`` was extracted around the cursor.
        cursor_marker: Marker text referenced by the sentence-mode instruction.

    Returns:
        The full prompt string.
    """

    sections = [config.system_prompt_template]
    if config.include_examples:
        sections.append(_format_examples(select_examples(context, is_sentence_mode, cursor_marker)))
    sections.append(f"Text:\n{context}")
    sections.append(_closing_instruction(is_sentence_mode, cursor_marker, config.include_reason))
    return "\n\n".join(sections)


def prompt_config_from_preferences(preferences: UserPreferences, base: PromptConfig = DEFAULT_PROMPT_CONFIG) -> PromptConfig:
    """Copy the model tuning fields of ``preferences`` onto ``base``."""

    return replace(
        base,
        top_k=preferences.top_k,
        temperature=preferences.temperature,
        output_language=preferences.output_language,
    )
