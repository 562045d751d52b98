"""Suggestion lifecycle events and a small synchronous event bus.

The controller publishes these events; rendering layers, telemetry and tests
subscribe to them without depending on the controller directly.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, TypeVar
from weakref import WeakMethod

from ..domain.context import Context
from ..domain.session import SkipReason, SuggestionRequestId
from ..domain.suggestion import SuggestionResult

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="SuggestionEvent")

Handler = Callable[[E], None]


@dataclass(frozen=True, slots=True)
class SuggestionEvent:
    """Base class for all suggestion lifecycle events."""


@dataclass(frozen=True, slots=True)
class SuggestionRequested(SuggestionEvent):
    """A new attempt began and a prompt is on its way to the model.

    Attributes:
        request_id: Identifier of the attempt.
        context: The validated context (never logged).
        context_length: Length of ``context`` in characters.
        prompt_length: Length of the rendered prompt in characters.
    """

    request_id: SuggestionRequestId
    context: Context
    context_length: int
    prompt_length: int


@dataclass(frozen=True, slots=True)
class SuggestionGenerated(SuggestionEvent):
    request_id: SuggestionRequestId
    result: SuggestionResult


@dataclass(frozen=True, slots=True)
class SuggestionShown(SuggestionEvent):
    request_id: SuggestionRequestId
    result: SuggestionResult


@dataclass(frozen=True, slots=True)
class SuggestionAccepted(SuggestionEvent):
    result: SuggestionResult


@dataclass(frozen=True, slots=True)
class SuggestionDismissed(SuggestionEvent):
    pass


@dataclass(frozen=True, slots=True)
class SuggestionSkipped(SuggestionEvent):
    reason: SkipReason


@dataclass(frozen=True, slots=True)
class SuggestionDiscarded(SuggestionEvent):
    """A model result arrived for a request that is no longer pending."""

    request_id: SuggestionRequestId


@dataclass(frozen=True, slots=True)
class SuggestionFailed(SuggestionEvent):
    """The model call failed or returned something other than one emoji.

    Attributes:
        request_id: Identifier of the failed attempt.
        error: Short machine-readable failure kind (``parse``, ``model``).
    """

    request_id: SuggestionRequestId
    error: str


@dataclass(frozen=True, slots=True)
class ModelUnavailableNotice(SuggestionEvent):
    """Throttled notice that the model cannot be used right now."""

    availability: str


class EventBus:
    """Typed publish/subscribe bus.

    Bound-method handlers are held weakly so subscribers can be garbage
    collected without unsubscribing; plain functions are held strongly.
    Handlers run synchronously in subscription order, and an exception in one
    handler is logged without stopping the others. Not thread-safe.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[SuggestionEvent], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: SuggestionEvent) -> None:
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        dead: list[int] = []
        for index, handler_ref in enumerate(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(index)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised for %s", _handler_name(handler), event_type.__name__
                )
        for index in reversed(dead):
            handlers.pop(index)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[SuggestionEvent] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "EventBus",
    "Handler",
    "SuggestionEvent",
    "SuggestionRequested",
    "SuggestionGenerated",
    "SuggestionShown",
    "SuggestionAccepted",
    "SuggestionDismissed",
    "SuggestionSkipped",
    "SuggestionDiscarded",
    "SuggestionFailed",
    "ModelUnavailableNotice",
]
