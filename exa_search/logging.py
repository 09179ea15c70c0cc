"""Logging utilities for the exa-search CLI.

Standard output is reserved for formatted results, so diagnostics go to stderr
unless a caller explicitly asks otherwise.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

LogFormat = Literal["text", "json"]
LogDestination = Literal["stderr", "stdout"]

REDACTED = "***"

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "process",
    "processName",
    "taskName",
    "message",
}


class JsonFormatter(logging.Formatter):
    """Format log records as structured JSON objects."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        for key, value in _extra_fields(record):
            payload[key] = value
        return json.dumps(payload, default=_stringify, ensure_ascii=False)


@dataclass(slots=True)
class _SecretRedactingFilter(logging.Filter):
    secrets: tuple[str, ...] = field(default_factory=tuple)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = self._redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        for key, value in _extra_fields(record):
            if isinstance(value, str):
                setattr(record, key, self._redact(value))
        return True

    def _redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text


def configure_logging(
    *,
    level: str | int = "WARNING",
    fmt: LogFormat = "text",
    destination: LogDestination = "stderr",
) -> logging.Logger:
    """Configure the root logger with a single handler and formatter."""

    resolved_level = _resolve_level(level)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved_level)

    formatter = _select_formatter(fmt)
    for handler in _build_handlers(destination):
        handler.setLevel(logging.NOTSET)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return root


def redact_secrets(*values: str) -> None:
    """Mask the given values in every record emitted through the root handlers."""

    secrets = tuple(value for value in values if value)
    if not secrets:
        return
    for handler in logging.getLogger().handlers:
        existing = next(
            (f for f in handler.filters if isinstance(f, _SecretRedactingFilter)), None
        )
        if existing is None:
            handler.addFilter(_SecretRedactingFilter(secrets=secrets))
        else:
            existing.secrets = tuple(dict.fromkeys(existing.secrets + secrets))


def _resolve_level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    normalized = value.upper()
    resolved = logging.getLevelName(normalized)
    if not isinstance(resolved, int):  # logging returns the input string when it fails
        raise ValueError(f"Unknown log level: {value}")
    return resolved


def _select_formatter(fmt: LogFormat) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    return logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")


def _build_handlers(destination: LogDestination) -> Iterable[logging.Handler]:
    if destination == "stdout":
        return (logging.StreamHandler(sys.stdout),)
    return (logging.StreamHandler(sys.stderr),)


def _extra_fields(record: logging.LogRecord) -> list[tuple[str, Any]]:
    return [
        (key, value)
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_KEYS and not key.startswith("_")
    ]


def _stringify(value: Any) -> str:
    return str(value)


__all__ = [
    "LogDestination",
    "LogFormat",
    "JsonFormatter",
    "REDACTED",
    "configure_logging",
    "redact_secrets",
]
