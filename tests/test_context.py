"""Tests for context fingerprints."""

from __future__ import annotations

from emojisuggest.domain.context import (
    context_trimmed_length,
    create_context,
    create_context_hash,
    hash_context_djb2,
    hash_equals,
    hash_string_djb2,
)


def test_djb2_seed_for_empty_string() -> None:
    assert hash_string_djb2("") == 5381


def test_djb2_single_character() -> None:
    assert hash_string_djb2("a") == 177604


def test_djb2_is_deterministic_and_unsigned() -> None:
    text = "The quick brown fox jumps over the lazy dog" * 20
    first = hash_string_djb2(text)
    assert first == hash_string_djb2(text)
    assert 0 <= first <= 0xFFFFFFFF


def test_djb2_counts_astral_characters_as_two_units() -> None:
    # U+1F600 is the surrogate pair D83D DE00.
    expected = 5381
    for unit in (0xD83D, 0xDE00):
        expected = ((expected * 33) ^ unit) & 0xFFFFFFFF
    assert hash_string_djb2("😀") == expected


def test_hash_context_matches_string_hash() -> None:
    context = create_context("hello world")
    assert hash_context_djb2(context) == hash_string_djb2("hello world")


def test_create_context_hash_masks_to_32_bits() -> None:
    assert create_context_hash(2**32 + 7) == 7
    assert create_context_hash(-1) == 0xFFFFFFFF


def test_hash_equals_requires_both_values() -> None:
    value = create_context_hash(42)
    assert hash_equals(value, create_context_hash(42))
    assert not hash_equals(value, create_context_hash(43))
    assert not hash_equals(None, value)
    assert not hash_equals(None, None)


def test_trimmed_length_ignores_surrounding_whitespace() -> None:
    assert context_trimmed_length(create_context("  abc \n")) == 3
