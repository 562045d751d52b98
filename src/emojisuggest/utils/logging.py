"""Logging setup and privacy helpers.

User text must never reach a log record. Modules log lengths via
:func:`redact_text`, and request-scoped messages go through
:class:`RequestLogAdapter` so every line carries the request id instead of
the text that triggered it.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Any, MutableMapping

__all__ = ["setup_logging", "get_log_path", "redact_text", "RequestLogAdapter", "request_logger"]

_DEFAULT_LOG_DIR = Path.home() / ".emojisuggest" / "logs"
_LOG_FILE_NAME = "emojisuggest.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Held at WARNING or above; their DEBUG output includes request bodies.
_TRANSPORT_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")

_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install a rotating file handler (and optionally stderr) on the root logger.

    Repeated calls are no-ops unless ``force`` is set, which lets the CLI
    raise the level after settings have been read.
    """

    global _log_path
    if _log_path is not None and not force:
        return _log_path

    directory = Path(log_dir or os.environ.get("EMOJISUGGEST_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    transport_level = max(level, logging.WARNING)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    _log_path = path
    return path


def get_log_path() -> Path | None:
    return _log_path


def redact_text(text: str | None, hint: str | None = None) -> str:
    """Describe ``text`` by length only, e.g. ``<redacted prompt: 42 chars>``."""

    length = len(text or "")
    if hint:
        return f"<redacted {hint}: {length} chars>"
    return f"<redacted: {length} chars>"


class RequestLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the suggestion request they belong to."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        request_id = (self.extra or {}).get("request_id", "-")
        return f"[request {request_id}] {msg}", kwargs


def request_logger(logger: logging.Logger, request_id: str) -> RequestLogAdapter:
    return RequestLogAdapter(logger, {"request_id": request_id})
