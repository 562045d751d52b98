"""Async model adapter built around OpenAI-compatible endpoints.

On-device runtimes (Ollama, llama.cpp, LM Studio) expose an OpenAI-compatible
HTTP API on localhost; this adapter talks to them through the official SDK.
Retries for transient transport failures live here, never in the suggestion
core.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping

import httpx
from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..domain.suggestion import SuggestionResult, parse_suggestion_output
from ..utils.logging import redact_text
from .errors import ModelError, ModelUnavailableError, SuggestionParseError
from .prompts import PromptConfig

__all__ = ["AvailabilityState", "ClientSettings", "EmojiModelClient"]

LOGGER = logging.getLogger(__name__)

AvailabilityState = Literal["available", "unavailable", "downloading", "downloadable"]

_LANGUAGE_NAMES: Mapping[str, str] = {"en": "English", "es": "Spanish", "ja": "Japanese"}
_REASON_MIN_TOKENS = 80


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the model client."""

    base_url: str
    api_key: str
    model: str
    request_timeout: float | None = 15.0
    max_retries: int = 2
    retry_min_seconds: float = 0.25
    retry_max_seconds: float = 2.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False


def _max_tokens(config: PromptConfig) -> int:
    # JSON replies with a reason need more room than a bare emoji.
    if config.include_reason:
        return max(config.max_tokens, _REASON_MIN_TOKENS)
    return config.max_tokens


class EmojiModelClient:
    """Sends emoji prompts to the model and parses the reply."""

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)
        self._did_probe = False

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def check_availability(self) -> AvailabilityState:
        """Probe the endpoint and report whether the configured model can answer."""

        try:
            response = await self._client.models.list()
        except (APIError, httpx.HTTPError) as exc:
            LOGGER.info("Model endpoint unavailable at %s: %s", self._settings.base_url, exc)
            return "unavailable"

        models = [item.id for item in getattr(response, "data", []) if getattr(item, "id", None)]
        if not self._did_probe:
            self._did_probe = True
            LOGGER.info("Model endpoint %s lists %d model(s)", self._settings.base_url, len(models))
        if self._settings.model in models:
            return "available"
        # Reachable endpoint without the model: it can be pulled on demand.
        return "downloadable"

    async def generate_raw(self, prompt: str, config: PromptConfig) -> str:
        """Return the model's raw reply text for ``prompt``."""

        payload = self._build_payload(prompt, config)
        LOGGER.debug(
            "Requesting suggestion from %s (prompt=%s, top_k=%s, temperature=%s)",
            self._settings.model,
            redact_text(prompt),
            config.top_k,
            config.temperature,
        )
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._client.chat.completions.create(**payload)
        except (APIConnectionError, httpx.TimeoutException) as exc:
            raise ModelUnavailableError(str(exc)) from exc
        except APIStatusError as exc:
            raise ModelError(f"Model endpoint returned HTTP {exc.status_code}") from exc
        except (APIError, httpx.HTTPError) as exc:
            raise ModelError(f"Model request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return str(getattr(message, "content", "") or "")

    async def generate_suggestion(self, prompt: str, config: PromptConfig) -> SuggestionResult:
        """Generate and parse a suggestion.

        Raises:
            ModelUnavailableError: The endpoint could not be reached.
            SuggestionParseError: The reply was not exactly one emoji.
        """

        output = await self.generate_raw(prompt, config)
        if self._settings.debug_logging:
            LOGGER.debug("Model raw output: %r", output)
        result = parse_suggestion_output(output)
        if result is None:
            LOGGER.warning("Model output rejected by parser (%s)", redact_text(output))
            raise SuggestionParseError(output)
        return result

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key or "local",
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            max_retries=0,
            default_headers=headers,
        )

    def _build_payload(self, prompt: str, config: PromptConfig) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        language = _LANGUAGE_NAMES.get(config.output_language or "")
        if language:
            messages.append({"role": "system", "content": f"Write any reason text in {language}."})
        messages.append({"role": "user", "content": prompt})
        return {
            "model": self._settings.model,
            "messages": messages,
            "temperature": config.temperature,
            "max_tokens": _max_tokens(config),
            # Not part of the OpenAI schema; local runtimes read it from the body.
            "extra_body": {"top_k": config.top_k},
        }

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(
                (
                    APIConnectionError,
                    RateLimitError,
                    httpx.TimeoutException,
                )
            ),
        )

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result
