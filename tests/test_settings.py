"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from emojisuggest.domain.preferences import UserPreferences, apply_preset
from emojisuggest.services.settings import SecretVault, Settings, SettingsStore, redact_secret


def _store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json", vault=SecretVault(key_path=tmp_path / "settings.key"))


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    assert _store(tmp_path).load() == Settings()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    original = Settings(
        base_url="http://127.0.0.1:8080/v1",
        api_key="super-secret",
        model="llama3.2:3b",
        cooldown_ms=750.0,
        include_reason=True,
        default_headers={"X-Test": "1"},
        preferences=apply_preset(UserPreferences(output_language="ja"), "creative"),
    )

    _store(tmp_path).save(original)
    reloaded = _store(tmp_path).load()

    assert reloaded == original


def test_api_key_is_encrypted_at_rest(tmp_path: Path) -> None:
    path = _store(tmp_path).save(Settings(api_key="super-secret"))

    payload = json.loads(path.read_text(encoding="utf-8"))

    assert "api_key" not in payload
    assert payload["api_key_ciphertext"]
    assert "super-secret" not in path.read_text(encoding="utf-8")
    assert payload["version"] == 1


def test_undecryptable_key_falls_back_to_empty(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"model": "m", "api_key_ciphertext": "not-a-token"}), encoding="utf-8")

    loaded = _store(tmp_path).load()

    assert loaded.api_key == ""
    assert loaded.model == "m"


def test_invalid_json_returns_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text("{not json", encoding="utf-8")
    assert _store(tmp_path).load() == Settings()


def test_invalid_preferences_fall_back_to_defaults(tmp_path: Path) -> None:
    payload = {"model": "m", "preferences": {"top_k": 999}}
    (tmp_path / "settings.json").write_text(json.dumps(payload), encoding="utf-8")

    loaded = _store(tmp_path).load()

    assert loaded.model == "m"
    assert loaded.preferences == UserPreferences()


def test_partial_preferences_merge_over_defaults(tmp_path: Path) -> None:
    payload = {"preferences": {"enabled": False, "context": {"context_mode": "characters"}}}
    (tmp_path / "settings.json").write_text(json.dumps(payload), encoding="utf-8")

    preferences = _store(tmp_path).load().preferences

    assert not preferences.enabled
    assert preferences.context.context_mode == "characters"
    assert preferences.context.max_context_length == 200


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    payload = {"model": "m", "theme": "dark", "version": 1}
    (tmp_path / "settings.json").write_text(json.dumps(payload), encoding="utf-8")
    assert _store(tmp_path).load() == Settings(model="m")


def test_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _store(tmp_path).save(Settings(base_url="http://local", api_key="abc"))
    monkeypatch.setenv("EMOJISUGGEST_BASE_URL", "http://env-base")
    monkeypatch.setenv("EMOJISUGGEST_API_KEY", "env-key")
    monkeypatch.setenv("EMOJISUGGEST_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("EMOJISUGGEST_COOLDOWN_MS", "250")

    loaded = _store(tmp_path).load(overrides={"base_url": "http://cli"})

    assert loaded.base_url == "http://env-base"
    assert loaded.api_key == "env-key"
    assert loaded.debug_logging is True
    assert loaded.cooldown_ms == 250.0


def test_invalid_float_env_override_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("EMOJISUGGEST_REQUEST_TIMEOUT", "soon")
    assert _store(tmp_path).load().request_timeout == Settings().request_timeout


def test_cli_overrides_apply_known_fields(tmp_path: Path) -> None:
    loaded = _store(tmp_path).load(overrides={"model": "cli-model", "bogus": 1, "max_retries": None})
    assert loaded.model == "cli-model"
    assert loaded.max_retries == Settings().max_retries


def test_secret_vault_roundtrip_and_key_reuse(tmp_path: Path) -> None:
    key_path = tmp_path / "vault.key"
    token = SecretVault(key_path=key_path).encrypt("hunter2")

    assert key_path.exists()
    assert SecretVault(key_path=key_path).decrypt(token) == "hunter2"
    assert SecretVault(key_path=key_path).encrypt("") == ""
    with pytest.raises(ValueError):
        SecretVault(key_path=tmp_path / "other.key").decrypt(token)


def test_client_settings_subset() -> None:
    settings = Settings(api_key="k", model="m", default_headers={})
    client_settings = settings.client_settings()
    assert client_settings.model == "m"
    assert client_settings.api_key == "k"
    assert client_settings.default_headers is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", ""), ("abc", "***"), ("sk-123456", "sk*****56")],
)
def test_redact_secret(value: str, expected: str) -> None:
    assert redact_secret(value) == expected


def test_save_preferences_keeps_other_fields(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(Settings(model="stored-model", api_key="secret"))

    store.save_preferences(apply_preset(UserPreferences(), "simple"))
    reloaded = _store(tmp_path).load()

    assert reloaded.model == "stored-model"
    assert reloaded.api_key == "secret"
    assert reloaded.preferences.preset_mode == "simple"
    assert reloaded.preferences.context.context_mode == "characters"
