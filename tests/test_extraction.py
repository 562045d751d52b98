"""Tests for character and sentence context extraction."""

from __future__ import annotations

import pytest

from emojisuggest.domain.errors import PreferencesError
from emojisuggest.domain.extraction import (
    ContextExtractionSettings,
    SentenceContextSettings,
    extract_context,
    extract_context_around_cursor,
    extract_context_before_cursor,
    split_into_sentences,
)


def _characters(**overrides) -> ContextExtractionSettings:
    return ContextExtractionSettings(context_mode="characters", **overrides)


def test_character_mode_starts_after_first_boundary() -> None:
    text = "First sentence. Second sentence"
    assert extract_context_before_cursor(text, len(text), _characters()) == " Second sentence"


def test_character_mode_without_boundary_adjustment_keeps_window() -> None:
    text = "First sentence. Second sentence"
    settings = _characters(adjust_to_boundary=False)
    assert extract_context_before_cursor(text, len(text), settings) == text


def test_character_mode_keeps_window_when_boundary_is_last_char() -> None:
    assert extract_context_before_cursor("Hello world.", 12, _characters()) == "Hello world."


def test_character_mode_respects_max_length() -> None:
    settings = _characters(max_context_length=5, adjust_to_boundary=False)
    assert extract_context_before_cursor("abcdefghij", 10, settings) == "fghij"


def test_character_mode_only_uses_text_before_cursor() -> None:
    assert extract_context_before_cursor("Hello world", 5, _characters()) == "Hello"


@pytest.mark.parametrize(
    ("cursor", "expected"),
    [(-5, ""), (0, ""), (100, "Hello world")],
)
def test_cursor_is_clamped(cursor: int, expected: str) -> None:
    assert extract_context_before_cursor("Hello world", cursor, _characters()) == expected


def test_split_into_sentences_keeps_partial_tail() -> None:
    assert split_into_sentences("One. Two! Three") == ["One.", " Two!", " Three"]
    assert split_into_sentences("") == []
    assert split_into_sentences("a\nb") == ["a\n", "b"]


def test_sentence_mode_partial_sentence_before_cursor() -> None:
    settings = SentenceContextSettings(before_sentence_count=1)
    text = "One. Two. Three"
    result = extract_context_around_cursor(text, len(text), settings)
    assert result.context_with_marker == " Two. Three[CURSOR]"
    assert result.context_without_marker == " Two. Three"


def test_sentence_mode_complete_sentences_on_both_sides() -> None:
    settings = SentenceContextSettings(before_sentence_count=1, after_sentence_count=1)
    text = "One. Two. Three. Four."
    result = extract_context_around_cursor(text, len("One. Two."), settings)
    assert result.context_with_marker == " Two.[CURSOR] Three. Four."


def test_sentence_mode_marks_cursor_between_words() -> None:
    result = extract_context_around_cursor("Hello world", 5, SentenceContextSettings())
    assert result.context_with_marker == "Hello[CURSOR] world"
    assert result.context_without_marker == "Hello world"


def test_sentence_mode_cursor_mid_sentence() -> None:
    settings = SentenceContextSettings()
    text = "I love pizza so much. Really."
    result = extract_context_around_cursor(text, len("I love pizza"), settings)
    assert result.context_with_marker == "I love pizza[CURSOR] so much."
    assert result.context_without_marker == "I love pizza so much."


def test_sentence_mode_partial_sentence_after_cursor() -> None:
    settings = SentenceContextSettings(after_sentence_count=1)
    result = extract_context_around_cursor("Hi. abc", len("Hi. "), settings)
    assert result.context_with_marker == " [CURSOR]abc"


def test_sentence_mode_handles_japanese_boundaries() -> None:
    settings = SentenceContextSettings(before_sentence_count=1)
    text = "今日は晴れ。散歩に行く"
    result = extract_context_around_cursor(text, len(text), settings)
    assert result.context_with_marker == "今日は晴れ。散歩に行く[CURSOR]"


def test_sentence_mode_uses_custom_marker() -> None:
    settings = SentenceContextSettings(cursor_marker="▶")
    result = extract_context_around_cursor("Good morning", 4, settings)
    assert result.context_with_marker == "Good▶ morning"
    assert "▶" not in result.context_without_marker


def test_sentence_mode_empty_text() -> None:
    result = extract_context_around_cursor("", 0, SentenceContextSettings())
    assert result.context_with_marker == "[CURSOR]"
    assert result.context_without_marker == ""


def test_extract_context_dispatches_on_mode() -> None:
    text = "Lunch was great. Pizza"
    sentences = extract_context(text, len(text), ContextExtractionSettings())
    assert sentences.is_sentence_mode
    assert sentences.context_for_prompt == " Pizza[CURSOR]"
    assert sentences.context_for_validation == " Pizza"

    characters = extract_context(text, len(text), _characters())
    assert not characters.is_sentence_mode
    assert characters.context_for_prompt == characters.context_for_validation == " Pizza"


@pytest.mark.parametrize(
    "overrides",
    [
        {"context_mode": "words"},
        {"min_context_length": 0},
        {"min_context_length": 10, "max_context_length": 5},
        {"max_context_length": 1001},
    ],
)
def test_invalid_extraction_settings_raise(overrides) -> None:
    with pytest.raises(PreferencesError):
        ContextExtractionSettings(**overrides)


@pytest.mark.parametrize(
    "overrides",
    [
        {"before_sentence_count": -1},
        {"after_sentence_count": 11},
        {"cursor_marker": ""},
        {"cursor_marker": "x" * 21},
    ],
)
def test_invalid_sentence_settings_raise(overrides) -> None:
    with pytest.raises(PreferencesError):
        SentenceContextSettings(**overrides)


def test_with_overrides_revalidates() -> None:
    settings = ContextExtractionSettings()
    assert settings.with_overrides(max_context_length=300).max_context_length == 300
    with pytest.raises(PreferencesError):
        settings.with_overrides(max_context_length=2)
