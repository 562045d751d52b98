"""Suggestion session state machine.

The session tracks one suggestion lifecycle at a time::

    Idle -> Pending -> Shown -> Completed -> Idle

Every operation invoked from an unexpected state is a no-op that reports
failure through its return value; nothing here raises for ordinary misuse.

Cooldown and same-context bookkeeping (``last_attempt_at_ms`` and
``last_context_hash``) are written only by a successful :meth:`begin_request`
and survive cancellation and reset, so repeatedly triggering and cancelling
cannot bypass throttling. Request identifiers are single-use: a response
carrying anything other than the pending id is discarded.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Literal, NewType

from .context import Context, ContextHash, hash_equals
from .suggestion import SuggestionResult

__all__ = [
    "SessionState",
    "CompletedReason",
    "SkipReason",
    "SKIP_REASONS",
    "SuggestionRequestId",
    "RequestBegun",
    "RequestSkipped",
    "BeginRequestResult",
    "SuggestionSessionSnapshot",
    "SuggestionSession",
]

LOGGER = logging.getLogger(__name__)

SuggestionRequestId = NewType("SuggestionRequestId", str)

CompletedReason = Literal["accepted", "dismissed"]

SkipReason = Literal[
    "cooldown",
    "same-context",
    "not-idle",
    "conditions",
    "too-short",
    "selection",
    "composing",
    "not-focused",
    "not-supported",
    "unavailable",
    "disabled",
]
SKIP_REASONS: tuple[str, ...] = (
    "cooldown",
    "same-context",
    "not-idle",
    "conditions",
    "too-short",
    "selection",
    "composing",
    "not-focused",
    "not-supported",
    "unavailable",
    "disabled",
)


class SessionState(str, Enum):
    IDLE = "Idle"
    PENDING = "Pending"
    SHOWN = "Shown"
    COMPLETED = "Completed"


@dataclass(frozen=True, slots=True)
class RequestSkipped:
    reason: SkipReason
    kind: Literal["skipped"] = "skipped"


@dataclass(frozen=True, slots=True)
class RequestBegun:
    request_id: SuggestionRequestId
    kind: Literal["begun"] = "begun"


BeginRequestResult = RequestSkipped | RequestBegun


@dataclass(frozen=True, slots=True)
class SuggestionSessionSnapshot:
    """Read-only view of the session for rendering and diagnostics."""

    state: SessionState
    context: Context | None
    suggestion_result: SuggestionResult | None
    completed_reason: CompletedReason | None
    last_attempt_at_ms: float
    last_context_hash: ContextHash | None
    pending_request_id: SuggestionRequestId | None


class SuggestionSession:
    """Single source of truth for whether a suggestion is in flight or visible."""

    def __init__(self) -> None:
        self._state = SessionState.IDLE
        self._context: Context | None = None
        self._suggestion_result: SuggestionResult | None = None
        self._completed_reason: CompletedReason | None = None
        self._last_attempt_at_ms: float = -math.inf
        self._last_context_hash: ContextHash | None = None
        self._pending_request_id: SuggestionRequestId | None = None
        self._request_counter = itertools.count(1)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def context(self) -> Context | None:
        return self._context

    @property
    def suggestion_result(self) -> SuggestionResult | None:
        return self._suggestion_result

    @property
    def completed_reason(self) -> CompletedReason | None:
        return self._completed_reason

    @property
    def last_attempt_at_ms(self) -> float:
        return self._last_attempt_at_ms

    @property
    def last_context_hash(self) -> ContextHash | None:
        return self._last_context_hash

    @property
    def pending_request_id(self) -> SuggestionRequestId | None:
        return self._pending_request_id

    def snapshot(self) -> SuggestionSessionSnapshot:
        return SuggestionSessionSnapshot(
            state=self._state,
            context=self._context,
            suggestion_result=self._suggestion_result,
            completed_reason=self._completed_reason,
            last_attempt_at_ms=self._last_attempt_at_ms,
            last_context_hash=self._last_context_hash,
            pending_request_id=self._pending_request_id,
        )

    def is_overlay_visible(self) -> bool:
        return self._state is SessionState.SHOWN and self._suggestion_result is not None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def begin_request(
        self,
        *,
        now_ms: float,
        context: Context,
        context_hash: ContextHash,
        cooldown_ms: float,
    ) -> BeginRequestResult:
        """Start a new attempt unless cooldown or same-context suppression applies.

        Valid from any state; a successful begin supersedes whatever was
        pending or shown.
        """

        if now_ms - self._last_attempt_at_ms < cooldown_ms:
            return RequestSkipped("cooldown")
        if hash_equals(self._last_context_hash, context_hash):
            return RequestSkipped("same-context")

        self._last_attempt_at_ms = now_ms
        self._last_context_hash = context_hash

        self._state = SessionState.PENDING
        self._context = context
        self._suggestion_result = None
        self._completed_reason = None

        request_id = self._next_request_id(now_ms)
        self._pending_request_id = request_id
        LOGGER.debug("Suggestion request %s begun", request_id)
        return RequestBegun(request_id)

    def receive_suggestion(
        self,
        request_id: SuggestionRequestId,
        suggestion_result: SuggestionResult | None,
    ) -> bool:
        """Attach a model result to the pending request.

        Returns ``False`` without touching state when the session is not
        pending or ``request_id`` is stale. A missing result for the current
        request cancels the attempt.
        """

        if self._state is not SessionState.PENDING:
            return False
        if self._pending_request_id is None or request_id != self._pending_request_id:
            LOGGER.debug("Discarding stale suggestion for request %s", request_id)
            return False
        if suggestion_result is None:
            self.cancel_pending_or_overlay()
            return False

        self._state = SessionState.SHOWN
        self._suggestion_result = suggestion_result
        self._pending_request_id = None
        return True

    def accept(self) -> SuggestionResult | None:
        if self._state is not SessionState.SHOWN or self._suggestion_result is None:
            return None
        self._state = SessionState.COMPLETED
        self._completed_reason = "accepted"
        return self._suggestion_result

    def dismiss(self) -> bool:
        if self._state is not SessionState.SHOWN:
            return False
        self._state = SessionState.COMPLETED
        self._completed_reason = "dismissed"
        return True

    def cancel_pending_only(self) -> bool:
        if self._state is not SessionState.PENDING:
            return False
        self._clear_attempt()
        return True

    def cancel_pending_or_overlay(self) -> bool:
        if self._state not in (SessionState.PENDING, SessionState.SHOWN):
            return False
        self._clear_attempt()
        return True

    def reset_if_completed(self) -> bool:
        if self._state is not SessionState.COMPLETED:
            return False
        self._clear_attempt()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _clear_attempt(self) -> None:
        # Cooldown/hash bookkeeping intentionally left untouched.
        self._state = SessionState.IDLE
        self._context = None
        self._suggestion_result = None
        self._pending_request_id = None
        self._completed_reason = None

    def _next_request_id(self, now_ms: float) -> SuggestionRequestId:
        return SuggestionRequestId(f"{int(now_ms)}-{next(self._request_counter)}")
