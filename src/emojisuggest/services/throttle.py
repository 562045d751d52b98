"""Time-based throttle for transient notices."""

from __future__ import annotations

__all__ = ["should_allow_throttled_action"]


def should_allow_throttled_action(
    *,
    last_shown_at_ms: float | None,
    now_ms: float,
    throttle_ms: float,
) -> bool:
    """Return ``True`` when at least ``throttle_ms`` has passed since the last occurrence."""

    if last_shown_at_ms is None:
        return True
    return now_ms - last_shown_at_ms >= throttle_ms
