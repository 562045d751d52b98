"""Async controller driving one suggestion session against the model client."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..ai.client import AvailabilityState, EmojiModelClient
from ..ai.errors import ModelError, ModelUnavailableError, SuggestionParseError
from ..ai.prompts import PromptConfig, prompt_config_from_preferences
from ..domain.preferences import UserPreferences
from ..domain.session import (
    RequestSkipped,
    SessionState,
    SkipReason,
    SuggestionRequestId,
    SuggestionSession,
)
from ..domain.suggestion import SuggestionResult
from ..utils.logging import redact_text, request_logger
from ..utils.telemetry import TelemetryClient
from .events import (
    EventBus,
    ModelUnavailableNotice,
    SuggestionAccepted,
    SuggestionDiscarded,
    SuggestionDismissed,
    SuggestionFailed,
    SuggestionGenerated,
    SuggestionRequested,
    SuggestionShown,
    SuggestionSkipped,
)
from .orchestrator import SuggestionInputSnapshot
from .settings import Settings
from .throttle import should_allow_throttled_action
from .usecase import apply_emoji_suggestion_result, begin_emoji_suggestion_request

__all__ = ["SuggestionController"]

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SuggestionController:
    """Runs suggestion attempts and publishes their lifecycle on an :class:`EventBus`.

    The controller owns the session; hosts feed it input snapshots and user
    actions and render whatever the published events describe. Only one
    attempt is live at a time: a newer attempt supersedes the pending one and
    the superseded model reply is discarded when it arrives.
    """

    def __init__(
        self,
        client: EmojiModelClient,
        *,
        preferences: UserPreferences | None = None,
        cooldown_ms: float = 2_000.0,
        unavailable_notice_throttle_ms: float = 60_000.0,
        include_reason: bool = False,
        bus: EventBus | None = None,
        telemetry: TelemetryClient | None = None,
        session: SuggestionSession | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._client = client
        self._preferences = preferences or UserPreferences()
        self._cooldown_ms = cooldown_ms
        self._notice_throttle_ms = unavailable_notice_throttle_ms
        self._include_reason = include_reason
        self._bus = bus or EventBus()
        self._telemetry = telemetry or TelemetryClient(enabled=False)
        self._session = session or SuggestionSession()
        self._clock = clock or _monotonic_ms
        self._availability: AvailabilityState | None = None
        self._last_notice_at_ms: float | None = None
        self._prompt_config = self._build_prompt_config()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: EmojiModelClient | None = None,
        bus: EventBus | None = None,
        telemetry: TelemetryClient | None = None,
        clock: Clock | None = None,
    ) -> SuggestionController:
        return cls(
            client or EmojiModelClient(settings.client_settings()),
            preferences=settings.preferences,
            cooldown_ms=settings.cooldown_ms,
            unavailable_notice_throttle_ms=settings.unavailable_notice_throttle_ms,
            include_reason=settings.include_reason,
            bus=bus,
            telemetry=telemetry,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def session(self) -> SuggestionSession:
        return self._session

    @property
    def preferences(self) -> UserPreferences:
        return self._preferences

    @property
    def prompt_config(self) -> PromptConfig:
        return self._prompt_config

    def update_preferences(self, preferences: UserPreferences) -> None:
        """Swap preferences; a disabled update also clears any live attempt."""

        self._preferences = preferences
        self._prompt_config = self._build_prompt_config()
        if not preferences.enabled:
            self.cancel()

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------
    async def request(
        self,
        snapshot: SuggestionInputSnapshot,
        *,
        now_ms: float | None = None,
    ) -> SuggestionResult | None:
        """Run one attempt for ``snapshot``.

        Returns the suggestion now shown, or ``None`` when the attempt was
        skipped, failed or superseded.
        """

        now = self._clock() if now_ms is None else now_ms
        if not self._preferences.enabled:
            self._skip("disabled")
            return None

        if not await self._ensure_available(now):
            self._skip("unavailable")
            return None

        begun = begin_emoji_suggestion_request(
            self._session,
            now,
            snapshot,
            self._preferences.context,
            self._preferences.skip,
            self._prompt_config,
            self._cooldown_ms,
        )
        if isinstance(begun, RequestSkipped):
            self._skip(begun.reason)
            return None

        request_id = begun.request_id
        log = request_logger(LOGGER, request_id)
        log.debug("Prompt ready (%s)", redact_text(begun.prompt, "prompt"))
        self._bus.publish(
            SuggestionRequested(
                request_id=request_id,
                context=begun.context,
                context_length=begun.context_length,
                prompt_length=begun.prompt_length,
            )
        )
        self._telemetry.track_suggestion(
            "requested",
            request_id=request_id,
            context_length=begun.context_length,
            prompt_length=begun.prompt_length,
            mode=self._preferences.context.context_mode,
        )

        started = self._clock()
        try:
            result = await self._client.generate_suggestion(begun.prompt, self._prompt_config)
        except ModelUnavailableError as exc:
            log.info("Model became unavailable: %s", exc)
            self._availability = None
            self._fail(request_id, "unavailable")
            self._notify_unavailable("unavailable", self._clock())
            return None
        except SuggestionParseError:
            self._fail(request_id, "parse")
            return None
        except ModelError as exc:
            log.warning("Model call failed: %s", exc)
            self._fail(request_id, "model")
            return None

        latency_ms = self._clock() - started
        self._bus.publish(SuggestionGenerated(request_id=request_id, result=result))
        if not apply_emoji_suggestion_result(self._session, request_id, result):
            log.debug("Result arrived after the attempt ended; discarded")
            self._bus.publish(SuggestionDiscarded(request_id=request_id))
            self._telemetry.track_suggestion("discarded", request_id=request_id, latency_ms=latency_ms)
            return None

        self._bus.publish(SuggestionShown(request_id=request_id, result=result))
        self._telemetry.track_suggestion("shown", request_id=request_id, latency_ms=latency_ms)
        return result

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------
    def accept(self) -> SuggestionResult | None:
        """Accept the visible suggestion; the host inserts ``result.emoji`` at the cursor."""

        result = self._session.accept()
        if result is None:
            return None
        self._bus.publish(SuggestionAccepted(result=result))
        self._telemetry.track_suggestion("accepted")
        return result

    def dismiss(self) -> bool:
        if not self._session.dismiss():
            return False
        self._bus.publish(SuggestionDismissed())
        self._telemetry.track_suggestion("dismissed")
        return True

    def cancel(self) -> bool:
        """Drop the pending request or the visible overlay (focus loss, typing, scrolling)."""

        return self._session.cancel_pending_or_overlay()

    def reset(self) -> bool:
        return self._session.reset_if_completed()

    async def aclose(self) -> None:
        self._telemetry.flush()
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_prompt_config(self) -> PromptConfig:
        config = prompt_config_from_preferences(self._preferences)
        if self._include_reason:
            config = config.with_overrides(include_reason=True)
        return config

    async def _ensure_available(self, now_ms: float) -> bool:
        if self._availability == "available":
            return True
        availability = await self._client.check_availability()
        self._availability = availability
        if availability == "available":
            return True
        LOGGER.info("Model not ready (%s); skipping suggestion", availability)
        self._notify_unavailable(availability, now_ms)
        return False

    def _notify_unavailable(self, availability: str, now_ms: float) -> None:
        if not self._preferences.display.show_unavailable_toast:
            return
        if not should_allow_throttled_action(
            last_shown_at_ms=self._last_notice_at_ms,
            now_ms=now_ms,
            throttle_ms=self._notice_throttle_ms,
        ):
            return
        self._last_notice_at_ms = now_ms
        self._bus.publish(ModelUnavailableNotice(availability=availability))

    def _skip(self, reason: SkipReason) -> None:
        LOGGER.debug("Suggestion skipped: %s", reason)
        self._bus.publish(SuggestionSkipped(reason=reason))
        self._telemetry.track_suggestion("skipped", skip_reason=reason)

    def _fail(self, request_id: SuggestionRequestId, error: str) -> None:
        # A newer attempt may already own the session.
        if (
            self._session.state is SessionState.PENDING
            and self._session.pending_request_id == request_id
        ):
            self._session.cancel_pending_only()
        self._bus.publish(SuggestionFailed(request_id=request_id, error=error))
        self._telemetry.track_suggestion("failed", request_id=request_id, error=error)
