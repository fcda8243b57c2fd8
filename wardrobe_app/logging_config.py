"""Structured JSON logging for the wardrobe catalog.

Every entry carries a correlation id taken from the record or from the
``CORRELATION_ID`` context variable. Extra fields are scrubbed before they are
written: credentials, prompts and chat text are dropped, and embedded images
are reduced to a marker so a catalogued photo never ends up in a log file.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Mapping

CORRELATION_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}
_SECRET_FIELDS = frozenset(
    {
        "api_key",
        "key",
        "credential",
        "image_data_url",
        "imageDataUrl",
        "image_bytes",
        "context",
        "prompt",
        "text",
        "message_text",
    }
)
_KEY_PARAM = re.compile(r"[?&]key=")
_MAX_STRING_LENGTH = 200


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, logger, event, correlation id and extras."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = record.getMessage()
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", message),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        }
        entry.update(redact_for_log(extras))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger through a single JSON stream handler."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler], force=True)


def _redact_string(value: str) -> str:
    if value.startswith("data:"):
        return "[redacted-data-url]"
    if _KEY_PARAM.search(value):
        return "[redacted-url]"
    if len(value) > _MAX_STRING_LENGTH:
        return value[:_MAX_STRING_LENGTH] + "...[truncated]"
    return value


def redact_for_log(payload: Any) -> Any:
    """Return a log-safe copy of ``payload``."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _redact_string(payload)
    if isinstance(payload, (bytes, bytearray)):
        return f"[{len(payload)} bytes]"
    if isinstance(payload, Mapping):
        return {
            key: "[redacted]" if key in _SECRET_FIELDS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    return _redact_string(str(payload))


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, or keep the current one, or start a new one."""

    if correlation_id is None:
        correlation_id = CORRELATION_ID.get() or uuid.uuid4().hex
    CORRELATION_ID.set(correlation_id)
    return correlation_id


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Scope a correlation id to a ``with`` block."""

    scoped_id = correlation_id or uuid.uuid4().hex
    token = CORRELATION_ID.set(scoped_id)
    try:
        yield scoped_id
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with scrubbed structured fields.

    Field names that collide with LogRecord attributes are prefixed with
    ``field_`` instead of failing the log call.
    """

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    extra = {
        (f"field_{key}" if key in _RECORD_ATTRS else key): value
        for key, value in redact_for_log(fields).items()
    }
    extra.update(event=event, correlation_id=correlation_id)
    logger.log(level, event, exc_info=exc_info, extra=extra)


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Run one user-facing operation under its own correlation id."""

    with correlation_context(attributes.pop("correlation_id", None)) as scoped_id:
        log_event(get_logger(__name__), logging.DEBUG, "operation_started", operation=name, **attributes)
        yield scoped_id


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
