"""Stdout logging for preservation workers.

One handler writes either NDJSON or ``key=value`` suffixed lines. Each line
carries the bound job context plus any canonical ``fields`` passed through
``extra=``, so a druid's audit trail can be grepped across workers.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from . import fields
from .context import bind_context, get_context

# Chatty at INFO during multipart uploads and HTTP retries.
_LIBRARY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Attach the current job context to each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


def structured_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return canonical fields attached to ``record`` via ``extra=``."""
    return {
        key: record.__dict__[key]
        for key in fields.STRUCTURED_FIELDS
        if record.__dict__.get(key) is not None
    }


def _structured(record: logging.LogRecord) -> dict[str, Any]:
    context = getattr(record, "context", None)
    merged: dict[str, Any] = dict(context) if isinstance(context, dict) else {}
    merged.update(structured_extras(record))
    return merged


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields, then context and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **_structured(record),
        }
        if record.exc_info:
            payload.setdefault(fields.EXCEPTION_TYPE, record.exc_info[0].__name__)
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable line with sorted ``key=value`` pairs appended."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        structured = _structured(record)
        if not structured:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(structured.items()))
        return f"{line} {pairs}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Install the single stdout handler on the root logger.

    Safe to call repeatedly: earlier root handlers are replaced. Storage SDK
    and HTTP client loggers are held at WARNING unless ``level`` is DEBUG.
    """
    level = level.upper()
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    bind_context(**{fields.SERVICE: service, fields.ENVIRONMENT: environment})


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the stdlib logger for ``name``."""
    return logging.getLogger(name)
