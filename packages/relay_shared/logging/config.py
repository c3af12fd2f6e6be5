"""Stdout logging configuration for relay runtimes.

Records carry the bound exchange context plus the emitting thread name, which
makes the per-producer executor thread visible in completion logs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

from . import fields
from .context import bind_context, get_context

if TYPE_CHECKING:
    from packages.relay_shared.config import LoggingSettings

_THREAD = "thread"


class ContextFilter(logging.Filter):
    """Inject the current exchange/service context into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        setattr(record, "context", context)
        for key, value in context.items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON logs with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            _THREAD: record.threadName,
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that still appends structured context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s [%(threadName)s] %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{message} {suffix}"


class RelayStreamHandler(logging.StreamHandler):
    """Stdout handler installed by ``configure_logging``.

    Only handlers of this type are replaced on reconfiguration; handlers other
    code attached to the root logger (test capture, host agents) stay.
    """

    def __init__(self, *, json_output: bool, stream: TextIO | None = None) -> None:
        super().__init__(stream=stream if stream is not None else sys.stdout)
        self.addFilter(ContextFilter())
        self.setFormatter(JsonFormatter() if json_output else PlainFormatter())


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> RelayStreamHandler:
    """Install the relay stdout handler on the root logger and return it.

    ``service`` and ``environment`` are bound into the log context so every
    record carries them.
    """
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, RelayStreamHandler)]:
        root.removeHandler(existing)
        existing.close()

    handler = RelayStreamHandler(json_output=json_output, stream=stream)
    handler.setLevel(level.upper())
    root.addHandler(handler)
    root.setLevel(level.upper())

    bind_context(
        **{fields.SERVICE: service or None, fields.ENVIRONMENT: environment or None}
    )
    return handler


def configure_logging_from_settings(settings: LoggingSettings) -> RelayStreamHandler:
    """Apply the ``logging`` settings subtree."""
    return configure_logging(**settings.model_dump())


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)
