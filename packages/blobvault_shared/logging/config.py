"""Stdout logging configuration for blobvault.

Design goals:
- One stdout handler, replaced on every call so repeated configuration never
  duplicates output.
- Structured fields from the logging context on every line, either as JSON
  or appended to a plain human-readable line.
- Third-party transport chatter kept at WARNING unless DEBUG is requested.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from . import fields
from .context import bind_context, get_context

_NOISY_LOGGERS = ("websockets", "sqlalchemy.engine", "asyncio")


class ContextFilter(logging.Filter):
    """Inject the bound logging context into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        setattr(record, "context", context)
        return True


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON logs with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that appends structured context as key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure root logging with a single handler, stdout unless overridden."""
    normalized = level.upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(normalized)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setLevel(normalized)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)

    if normalized != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    seed: dict[str, str] = {}
    if service:
        seed[fields.SERVICE] = service
    if environment:
        seed[fields.ENVIRONMENT] = environment
    if seed:
        bind_context(**seed)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger from Python's standard logging hierarchy."""
    return logging.getLogger(name)
