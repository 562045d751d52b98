"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from tests.helpers import FakeOpenAI


@pytest.fixture
def fake_openai_factory():
    return FakeOpenAI


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "EMOJISUGGEST_API_KEY",
        "EMOJISUGGEST_BASE_URL",
        "EMOJISUGGEST_MODEL",
        "EMOJISUGGEST_DEBUG_LOGGING",
        "EMOJISUGGEST_INCLUDE_REASON",
        "EMOJISUGGEST_REQUEST_TIMEOUT",
        "EMOJISUGGEST_COOLDOWN_MS",
        "EMOJISUGGEST_TELEMETRY",
        "EMOJISUGGEST_SETTINGS_PATH",
        "EMOJISUGGEST_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EMOJISUGGEST_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("EMOJISUGGEST_TELEMETRY_DIR", str(tmp_path / "telemetry"))
