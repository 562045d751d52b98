"""Shared test helpers and stub classes.

Import from here instead of duplicating these stubs in individual test files.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from emojisuggest.services.orchestrator import SuggestionInputSnapshot


class FakeCompletions:
    """Stands in for ``AsyncOpenAI.chat.completions``.

    Each queued reply is either the message content to return or an exception
    to raise for that call.
    """

    def __init__(self, replies: list[Any]) -> None:
        self._replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        reply = self._replies.pop(0) if self._replies else ""
        if isinstance(reply, BaseException):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeModels:
    def __init__(self, model_ids: list[str], error: BaseException | None = None) -> None:
        self._model_ids = model_ids
        self._error = error
        self.calls = 0

    async def list(self) -> SimpleNamespace:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return SimpleNamespace(data=[SimpleNamespace(id=model_id) for model_id in self._model_ids])


class FakeOpenAI:
    """Exposes the parts of ``AsyncOpenAI`` the model client touches."""

    def __init__(
        self,
        replies: list[Any] | None = None,
        *,
        model_ids: list[str] | None = None,
        models_error: BaseException | None = None,
    ) -> None:
        self.completions = FakeCompletions(replies or [])
        self.chat = SimpleNamespace(completions=self.completions)
        self.models = FakeModels(model_ids if model_ids is not None else ["test-model"], models_error)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def make_snapshot(text: str, cursor: int | None = None, **overrides: Any) -> SuggestionInputSnapshot:
    """Snapshot of a focused, supported input with a collapsed selection."""

    values: dict[str, Any] = {
        "is_supported_input": True,
        "has_focus": True,
        "is_composing": False,
        "has_collapsed_selection": True,
        "full_text": text,
        "cursor_index": len(text) if cursor is None else cursor,
    }
    values.update(overrides)
    return SuggestionInputSnapshot(**values)
