"""Tests for the notice throttle."""

from __future__ import annotations

from emojisuggest.services.throttle import should_allow_throttled_action


def test_first_occurrence_is_allowed() -> None:
    assert should_allow_throttled_action(last_shown_at_ms=None, now_ms=0, throttle_ms=60_000)


def test_blocks_inside_window_and_allows_at_boundary() -> None:
    assert not should_allow_throttled_action(last_shown_at_ms=1_000, now_ms=60_999, throttle_ms=60_000)
    assert should_allow_throttled_action(last_shown_at_ms=1_000, now_ms=61_000, throttle_ms=60_000)
