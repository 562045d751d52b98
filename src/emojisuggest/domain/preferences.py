"""User preferences, display settings and preset modes.

Preferences are immutable validated values. Presets batch-apply the AI tuning,
context and skip fields; display settings are personal UI choices and are never
touched by a preset.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Literal, Mapping

from .errors import PreferencesError, require_bool, require_int, require_number
from .extraction import ContextExtractionSettings, SentenceContextSettings
from .skip_policy import SkipConditions

__all__ = [
    "AcceptKey",
    "OutputLanguage",
    "OUTPUT_LANGUAGES",
    "PresetMode",
    "PRESET_MODES",
    "DisplaySettings",
    "PresetValues",
    "SIMPLE_PRESET",
    "BALANCED_PRESET",
    "CREATIVE_PRESET",
    "UserPreferences",
    "get_preset_values",
    "is_valid_preset_mode",
    "apply_preset",
]

LOGGER = logging.getLogger(__name__)

AcceptKey = Literal["Tab"]
OutputLanguage = Literal["en", "es", "ja"]
OUTPUT_LANGUAGES: tuple[str, ...] = ("en", "es", "ja")
PresetMode = Literal["simple", "balanced", "creative", "custom"]
PRESET_MODES: tuple[str, ...] = ("simple", "balanced", "creative", "custom")

MIN_TOP_K = 1
MAX_TOP_K = 128
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


@dataclass(frozen=True, slots=True)
class DisplaySettings:
    """UI feedback toggles, independent of preset modes."""

    show_unavailable_toast: bool = True
    show_reason_tooltip: bool = True

    def __post_init__(self) -> None:
        require_bool("show_unavailable_toast", self.show_unavailable_toast)
        require_bool("show_reason_tooltip", self.show_reason_tooltip)


@dataclass(frozen=True, slots=True)
class PresetValues:
    """The subset of :class:`UserPreferences` a preset controls."""

    top_k: int
    temperature: float
    context: ContextExtractionSettings
    skip: SkipConditions


SIMPLE_PRESET = PresetValues(
    top_k=3,
    temperature=0.5,
    context=ContextExtractionSettings(
        context_mode="characters",
        min_context_length=5,
        max_context_length=100,
        adjust_to_boundary=True,
        sentence_context=SentenceContextSettings(0, 0, "[CURSOR]"),
    ),
    skip=SkipConditions(skip_if_empty=True, skip_if_emoji_only=True, skip_if_url_only=True),
)

BALANCED_PRESET = PresetValues(
    top_k=8,
    temperature=0.7,
    context=ContextExtractionSettings(
        context_mode="sentences",
        min_context_length=5,
        max_context_length=200,
        adjust_to_boundary=True,
        sentence_context=SentenceContextSettings(2, 1, "[CURSOR]"),
    ),
    skip=SkipConditions(skip_if_empty=True, skip_if_emoji_only=True, skip_if_url_only=False),
)

CREATIVE_PRESET = PresetValues(
    top_k=15,
    temperature=1.2,
    context=ContextExtractionSettings(
        context_mode="sentences",
        min_context_length=5,
        max_context_length=200,
        adjust_to_boundary=True,
        sentence_context=SentenceContextSettings(3, 2, "[CURSOR]"),
    ),
    skip=SkipConditions(skip_if_empty=True, skip_if_emoji_only=True, skip_if_url_only=False),
)

_PRESETS: Mapping[str, PresetValues] = {
    "simple": SIMPLE_PRESET,
    "balanced": BALANCED_PRESET,
    "creative": CREATIVE_PRESET,
}


@dataclass(frozen=True, slots=True)
class UserPreferences:
    """Validated preference bundle handed to the suggestion core."""

    enabled: bool = True
    accept_key: AcceptKey = "Tab"
    preset_mode: PresetMode = "balanced"
    top_k: int = 8
    temperature: float = 0.7
    output_language: OutputLanguage = "en"
    context: ContextExtractionSettings = field(default_factory=ContextExtractionSettings)
    skip: SkipConditions = field(default_factory=SkipConditions)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    def __post_init__(self) -> None:
        require_bool("enabled", self.enabled)
        if self.accept_key != "Tab":
            raise PreferencesError("accept_key", "must be 'Tab'")
        if not is_valid_preset_mode(self.preset_mode):
            raise PreferencesError("preset_mode", f"must be one of {', '.join(PRESET_MODES)}")
        require_int("top_k", self.top_k)
        require_number("temperature", self.temperature)
        if not MIN_TOP_K <= self.top_k <= MAX_TOP_K:
            raise PreferencesError("top_k", f"must be between {MIN_TOP_K} and {MAX_TOP_K}")
        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise PreferencesError(
                "temperature", f"must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}"
            )
        if self.output_language not in OUTPUT_LANGUAGES:
            raise PreferencesError("output_language", f"must be one of {', '.join(OUTPUT_LANGUAGES)}")

    def with_overrides(self, **changes: Any) -> UserPreferences:
        return replace(self, **changes)

    def to_mapping(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> UserPreferences:
        """Merge a (possibly partial or older) payload over the defaults.

        Unknown keys are ignored so stored payloads from other versions still
        load. Raises :class:`PreferencesError` if the merged result is invalid.
        """

        defaults = cls()
        if not isinstance(payload, Mapping):
            return defaults

        context_payload = _mapping(payload.get("context"))
        sentence_payload = _mapping(context_payload.get("sentence_context"))
        sentence = _merge(defaults.context.sentence_context, sentence_payload)
        context = _merge(defaults.context, {**context_payload, "sentence_context": sentence})
        skip = _merge(defaults.skip, _mapping(payload.get("skip")))
        display = _merge(defaults.display, _mapping(payload.get("display")))

        top_level = {
            key: value
            for key, value in payload.items()
            if key in _TOP_LEVEL_FIELDS and value is not None
        }
        return replace(defaults, **top_level, context=context, skip=skip, display=display)


_TOP_LEVEL_FIELDS = frozenset(
    {"enabled", "accept_key", "preset_mode", "top_k", "temperature", "output_language"}
)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _merge(base: Any, overrides: Mapping[str, Any]) -> Any:
    allowed = set(base.__dataclass_fields__)
    filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
    if not filtered:
        return base
    return replace(base, **filtered)


def get_preset_values(mode: PresetMode) -> PresetValues | None:
    """Return the preset values for ``mode``; ``custom`` has none."""

    return _PRESETS.get(mode)


def is_valid_preset_mode(value: str) -> bool:
    return value in PRESET_MODES


def apply_preset(preferences: UserPreferences, mode: PresetMode) -> UserPreferences:
    """Return ``preferences`` with the preset's fields copied in."""

    if not is_valid_preset_mode(mode):
        raise PreferencesError("preset_mode", f"unknown preset {mode!r}")
    values = get_preset_values(mode)
    if values is None:
        return replace(preferences, preset_mode=mode)
    LOGGER.debug("Applying %s preset", mode)
    return replace(
        preferences,
        preset_mode=mode,
        top_k=values.top_k,
        temperature=values.temperature,
        context=values.context,
        skip=values.skip,
    )
