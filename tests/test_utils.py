"""Tests for logging and telemetry helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from emojisuggest.services.settings import Settings
from emojisuggest.utils import logging as logging_utils
from emojisuggest.utils.telemetry import TelemetryClient, telemetry_enabled


def test_setup_logging_writes_to_log_dir(tmp_path: Path) -> None:
    log_path = logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False, force=True)

    logging.getLogger("emojisuggest.test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path == tmp_path / "emojisuggest.log"
    assert logging_utils.get_log_path() == log_path
    assert "hello" in log_path.read_text(encoding="utf-8")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_redact_text_reports_length_only() -> None:
    assert logging_utils.redact_text("secret text") == "<redacted: 11 chars>"
    assert logging_utils.redact_text(None, "prompt") == "<redacted prompt: 0 chars>"


def test_disabled_telemetry_records_nothing(tmp_path: Path) -> None:
    client = TelemetryClient(enabled=False, storage_dir=tmp_path)
    client.track_suggestion("requested", context_length=3)
    assert client.pending_events() == 0
    assert client.flush() is None


def test_telemetry_drops_text_properties(tmp_path: Path) -> None:
    client = TelemetryClient(enabled=True, storage_dir=tmp_path, session_id="s1")
    client.track_suggestion("requested", context="private words", prompt="more", context_length=13, path=tmp_path)

    log_path = client.flush()

    assert log_path == tmp_path / "telemetry.jsonl"
    record = json.loads(log_path.read_text(encoding="utf-8"))
    assert record["event"] == "suggestion.requested"
    assert record["session"] == "s1"
    assert record["context_length"] == 13
    assert record["path"] == str(tmp_path)
    assert "context" not in record and "prompt" not in record


def test_telemetry_flushes_when_buffer_full(tmp_path: Path) -> None:
    client = TelemetryClient(enabled=True, storage_dir=tmp_path, max_buffer=2)
    client.track_event("one")
    client.track_event("two")
    assert client.pending_events() == 0
    assert len((tmp_path / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()) == 2


def test_telemetry_enabled_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    assert not telemetry_enabled(Settings())
    assert telemetry_enabled(Settings(telemetry_opt_in=True))
    monkeypatch.setenv("EMOJISUGGEST_TELEMETRY", "off")
    assert not telemetry_enabled(Settings(telemetry_opt_in=True))


def test_request_logger_prefixes_request_id(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("emojisuggest.test.request")
    with caplog.at_level(logging.INFO, logger="emojisuggest.test.request"):
        logging_utils.request_logger(logger, "1000-1").info("done in %d ms", 12)
    assert caplog.messages == ["[request 1000-1] done in 12 ms"]
