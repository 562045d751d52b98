"""Command-line entry point: suggest one emoji for a piece of text."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .domain.errors import PreferencesError
from .domain.preferences import UserPreferences, apply_preset, is_valid_preset_mode
from .domain.suggestion import SuggestionResult
from .services.controller import SuggestionController
from .services.events import ModelUnavailableNotice, SuggestionFailed, SuggestionSkipped
from .services.orchestrator import SuggestionInputSnapshot
from .services.settings import Settings, SettingsStore, redact_secret
from .utils import logging as logging_utils
from .utils.telemetry import TelemetryClient, telemetry_enabled

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except (OSError, PreferencesError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``emojisuggest`` console script."""

    args = _parse_cli_args(argv)

    debug = args.debug or _env_flag("EMOJISUGGEST_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("EMOJISUGGEST_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    if args.preset:
        settings.preferences = apply_preset(settings.preferences, args.preset)

    if args.save_preferences:
        saved_to = settings_store.save_preferences(settings.preferences)
        _LOGGER.info("Preferences saved to %s", saved_to)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return 0

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    text = args.text if args.text is not None else sys.stdin.read()
    cursor = len(text) if args.cursor is None else args.cursor
    result = asyncio.run(_suggest_once(settings, text, cursor))
    if result is None:
        return 1
    _print_result(result, show_reason=settings.include_reason)
    return 0


async def _suggest_once(settings: Settings, text: str, cursor: int) -> SuggestionResult | None:
    telemetry = TelemetryClient(enabled=telemetry_enabled(settings))
    controller = SuggestionController.from_settings(settings, telemetry=telemetry)
    controller.bus.subscribe(SuggestionSkipped, _report_skip)
    controller.bus.subscribe(SuggestionFailed, _report_failure)
    controller.bus.subscribe(ModelUnavailableNotice, _report_unavailable)
    snapshot = SuggestionInputSnapshot(
        is_supported_input=True,
        has_focus=True,
        is_composing=False,
        has_collapsed_selection=True,
        full_text=text,
        cursor_index=cursor,
    )
    try:
        return await controller.request(snapshot)
    finally:
        await controller.aclose()


def _report_skip(event: SuggestionSkipped) -> None:
    print(f"No suggestion ({event.reason}).", file=sys.stderr)


def _report_failure(event: SuggestionFailed) -> None:
    print(f"Suggestion failed ({event.error}).", file=sys.stderr)


def _report_unavailable(event: ModelUnavailableNotice) -> None:
    print(f"Emoji model is {event.availability}; check the endpoint settings.", file=sys.stderr)


def _print_result(result: SuggestionResult, *, show_reason: bool, stream: TextIO | None = None) -> None:
    destination = stream or sys.stdout
    destination.write(result.emoji)
    if show_reason:
        destination.write(f"\t{result.reason}")
    destination.write("\n")


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="emojisuggest",
        description="Suggest one emoji for the text around a cursor using a local model.",
    )
    parser.add_argument("--text", help="Input text; read from stdin when omitted.")
    parser.add_argument(
        "--cursor",
        type=int,
        metavar="INDEX",
        help="Cursor position within the text (defaults to the end).",
    )
    parser.add_argument(
        "--preset",
        type=_preset_mode,
        help="Apply a preset (simple, balanced, creative, custom) before suggesting.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.emojisuggest/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument(
        "--save-preferences",
        action="store_true",
        help="Persist the preferences produced by --preset and --set before running.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _preset_mode(value: str) -> str:
    if not is_valid_preset_mode(value):
        raise argparse.ArgumentTypeError(f"unknown preset '{value}'")
    return value


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        if key == "preferences":
            overrides[key] = _coerce_preferences(raw_value)
            continue
        overrides[key] = _coerce_value(type_hints.get(key, fields[key].type), raw_value)
    return overrides


def _coerce_preferences(raw_value: str) -> UserPreferences:
    try:
        payload = json.loads(raw_value or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError("preferences override must be a JSON object") from exc
    if not isinstance(payload, dict):
        raise ValueError("preferences override must be a JSON object")
    return UserPreferences.from_mapping(payload)


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = annotation
    if get_origin(annotation) is dict:
        target = dict
    normalized = raw_value.strip()

    if target is str:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    if target is dict:
        try:
            value = json.loads(normalized or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Dict overrides must be valid JSON objects") from exc
        if not isinstance(value, dict):
            raise ValueError("Dict overrides must be valid JSON objects")
        return value
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if args:
        return _coerce_value(args[0], normalized)
    return normalized


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _env_flag(name: str, *, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    payload["api_key"] = redact_secret(settings.api_key)
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": sorted(name for name in os.environ if name.startswith("EMOJISUGGEST_")),
    }
    json.dump({"settings": payload, "meta": metadata}, destination, indent=2, ensure_ascii=False)
    destination.write("\n")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
