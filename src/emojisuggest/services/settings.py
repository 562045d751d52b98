"""Persisted configuration: model endpoint, attempt pacing and user preferences.

Settings live in ``~/.emojisuggest/settings.json``. Precedence when loading is
file < ``--set`` overrides < ``EMOJISUGGEST_*`` environment variables. The API
key is stored as a Fernet token next to a per-user key file; no user text is
ever written here.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from cryptography.fernet import Fernet, InvalidToken

from ..ai.client import ClientSettings
from ..domain.errors import PreferencesError
from ..domain.preferences import UserPreferences

__all__ = [
    "Settings",
    "SettingsStore",
    "SecretVault",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)

_HOME_DIR = Path.home() / ".emojisuggest"
_SCHEMA_VERSION = 1
_CIPHERTEXT_KEY = "api_key_ciphertext"
_PREFERENCES_KEY = "preferences"


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on", "debug"}


_ENV_FIELDS: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "EMOJISUGGEST_API_KEY": ("api_key", str),
    "EMOJISUGGEST_BASE_URL": ("base_url", str),
    "EMOJISUGGEST_MODEL": ("model", str),
    "EMOJISUGGEST_REQUEST_TIMEOUT": ("request_timeout", float),
    "EMOJISUGGEST_COOLDOWN_MS": ("cooldown_ms", float),
    "EMOJISUGGEST_DEBUG_LOGGING": ("debug_logging", _parse_flag),
    "EMOJISUGGEST_INCLUDE_REASON": ("include_reason", _parse_flag),
}


@dataclass(slots=True)
class Settings:
    """Everything the CLI and controller need besides the input itself.

    ``cooldown_ms`` paces attempts inside the suggestion session;
    ``unavailable_notice_throttle_ms`` paces the "model unavailable" notice.
    """

    base_url: str = "http://localhost:11434/v1"
    api_key: str = ""
    model: str = "gemma3:1b"
    request_timeout: float = 15.0
    max_retries: int = 2
    retry_min_seconds: float = 0.25
    retry_max_seconds: float = 2.0
    cooldown_ms: float = 2_000.0
    unavailable_notice_throttle_ms: float = 60_000.0
    include_reason: bool = False
    debug_logging: bool = False
    telemetry_opt_in: bool = False
    default_headers: dict[str, str] = field(default_factory=dict)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    def client_settings(self) -> ClientSettings:
        return ClientSettings(
            base_url=self.base_url,
            api_key=self.api_key,
            model=self.model,
            request_timeout=self.request_timeout,
            max_retries=self.max_retries,
            retry_min_seconds=self.retry_min_seconds,
            retry_max_seconds=self.retry_max_seconds,
            default_headers=dict(self.default_headers) or None,
            debug_logging=self.debug_logging,
        )


_SCALAR_FIELDS = frozenset(item.name for item in fields(Settings)) - {"api_key", _PREFERENCES_KEY}


class SettingsStore:
    """Reads and writes :class:`Settings` as JSON."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or (_HOME_DIR / "settings.json")
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Return stored settings with ``overrides`` and then the environment applied.

        A missing or unreadable file yields defaults; invalid stored
        preferences fall back to default preferences without discarding the
        rest of the file.
        """

        document = self._read_document()
        settings = self._from_document(document) if document else Settings()
        if overrides:
            settings = _merge_overrides(settings, overrides, source="CLI")
        env_overrides = _environment_overrides()
        if env_overrides:
            settings = _merge_overrides(settings, env_overrides, source="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        document: Dict[str, Any] = {name: getattr(settings, name) for name in sorted(_SCALAR_FIELDS)}
        document[_PREFERENCES_KEY] = settings.preferences.to_mapping()
        if settings.api_key:
            document[_CIPHERTEXT_KEY] = self._vault.encrypt(settings.api_key)
        document["version"] = _SCHEMA_VERSION
        body = json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)
        _atomic_write(self._path, body.encode("utf-8"))
        LOGGER.debug("Settings written to %s", self._path)
        return self._path

    def save_preferences(self, preferences: UserPreferences) -> Path:
        """Persist new preferences while keeping the rest of the stored settings."""

        current = self._from_document(self._read_document())
        return self.save(replace(current, preferences=preferences))

    def _read_document(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            LOGGER.warning("Ignoring settings file %s: top level is not an object", self._path)
            return {}
        return document

    def _from_document(self, document: Mapping[str, Any]) -> Settings:
        scalars = {key: value for key, value in document.items() if key in _SCALAR_FIELDS}
        try:
            preferences = UserPreferences.from_mapping(document.get(_PREFERENCES_KEY))
        except PreferencesError as exc:
            LOGGER.warning("Stored preferences rejected (%s); using defaults", exc)
            preferences = UserPreferences()
        settings = Settings(**scalars, preferences=preferences)

        token = document.get(_CIPHERTEXT_KEY)
        if isinstance(token, str) and token:
            try:
                settings.api_key = self._vault.decrypt(token)
            except ValueError as exc:
                LOGGER.warning("Stored API key could not be decrypted: %s", exc)
        return settings


def _environment_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENV_FIELDS.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            overrides[field_name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring %s: %r is not a valid value", env_name, raw)
    return overrides


def _merge_overrides(settings: Settings, overrides: Mapping[str, Any], *, source: str) -> Settings:
    allowed = _SCALAR_FIELDS | {"api_key", _PREFERENCES_KEY}
    accepted = {key: value for key, value in overrides.items() if key in allowed and value is not None}
    if not accepted:
        return settings
    LOGGER.debug("Applying %s overrides: %s", source, ", ".join(sorted(accepted)))
    return replace(settings, **accepted)


def _atomic_write(path: Path, data: bytes, *, private: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(path.name + ".tmp")
    staging.write_bytes(data)
    if private and os.name != "nt":  # pragma: no cover - depends on OS
        os.chmod(staging, 0o600)
    staging.replace(path)


class SecretVault:
    """Fernet encryption for the endpoint API key.

    The key file is created on first use and reused afterwards; a token
    produced with a different key fails to decrypt with ``ValueError``.
    """

    def __init__(self, *, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_HOME_DIR / "settings.key")
        self._fernet: Fernet | None = None

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        return self._cipher().encrypt(secret.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        try:
            return self._cipher().decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("API key token does not match the local key") from exc

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            if self._key_path.exists():
                key = self._key_path.read_bytes().strip()
            else:
                key = Fernet.generate_key()
                _atomic_write(self._key_path, key, private=True)
            self._fernet = Fernet(key)
        return self._fernet


def redact_secret(value: str) -> str:
    """Mask all but the first and last two characters of ``value``."""

    secret = (value or "").strip()
    if len(secret) <= 4:
        return "*" * len(secret)
    return secret[:2] + "*" * (len(secret) - 4) + secret[-2:]
