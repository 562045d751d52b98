"""Opt-in telemetry for the suggestion lifecycle.

Events carry sizes, reasons and timings only. Properties that could hold user
text (``text``, ``context``, ``prompt``, ``output``) are dropped before an
event is buffered.
"""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

__all__ = ["TelemetryClient", "TelemetryEvent", "telemetry_enabled"]

_DEFAULT_TELEMETRY_DIR = Path.home() / ".emojisuggest" / "telemetry"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_TEXT_KEYS = frozenset({"text", "full_text", "context", "prompt", "output", "reason"})
_EVENT_PREFIX = "suggestion."


@dataclass(slots=True)
class TelemetryEvent:
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self, session_id: str) -> str:
        record = {
            "session": session_id,
            "event": self.name,
            "at": self.timestamp.isoformat(),
            **self.properties,
        }
        return json.dumps(record, ensure_ascii=False, sort_keys=True)


@dataclass(slots=True)
class TelemetryClient:
    """Buffers suggestion events and appends them to a JSONL file when enabled."""

    enabled: bool = False
    storage_dir: Path | str | None = None
    max_buffer: int = 32
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    _buffer: list[TelemetryEvent] = field(default_factory=list, init=False, repr=False)

    def track_suggestion(self, stage: str, **props: Any) -> None:
        """Record a lifecycle stage such as ``requested`` or ``skipped``."""

        self.track_event(f"{_EVENT_PREFIX}{stage}", **props)

    def track_event(self, name: str, **props: Any) -> None:
        if not self.enabled:
            return
        self._buffer.append(TelemetryEvent(name=name, properties=_scrub(props)))
        if len(self._buffer) >= self.max_buffer:
            self.flush()

    def flush(self) -> Path | None:
        """Append buffered events to ``telemetry.jsonl``; returns the file written, if any."""

        if not self.enabled or not self._buffer:
            return None

        target_dir = _storage_dir(self.storage_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        log_path = target_dir / "telemetry.jsonl"
        with log_path.open("a", encoding="utf-8") as handle:
            handle.writelines(event.to_json(self.session_id) + "\n" for event in self._buffer)
        self._buffer.clear()
        return log_path

    def pending_events(self) -> int:
        return len(self._buffer)


def telemetry_enabled(settings: Any | None = None) -> bool:
    """Environment wins over the ``telemetry_opt_in`` setting."""

    env_value = os.environ.get("EMOJISUGGEST_TELEMETRY")
    if env_value is not None:
        return env_value.strip().lower() in _TRUE_VALUES
    return bool(getattr(settings, "telemetry_opt_in", False))


def _scrub(props: Dict[str, Any]) -> Dict[str, Any]:
    scrubbed: Dict[str, Any] = {}
    for key, value in props.items():
        if key in _TEXT_KEYS:
            continue
        if isinstance(value, (str, int, float, bool)) or value is None:
            scrubbed[key] = value
        else:
            scrubbed[key] = str(value)
    return scrubbed


def _storage_dir(storage_dir: Path | str | None) -> Path:
    env_override = os.environ.get("EMOJISUGGEST_TELEMETRY_DIR")
    return Path(storage_dir or env_override or _DEFAULT_TELEMETRY_DIR).expanduser()
