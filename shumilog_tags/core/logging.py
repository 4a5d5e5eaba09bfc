"""Structured logging for the tag engine.

Services log through get_logger(__name__) and pass context as `extra`:

    logger.info("Tag created", extra={"tag_id": tag.id, "created_by": user})

Every line written inside correlation_scope() carries the same correlation id,
so all the writes of one unit of work can be grepped together.
"""

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from .config import settings

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Attributes every LogRecord has; anything else on a record came from `extra`
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Output format:
    {
        "timestamp": "2026-10-18T12:00:00.000000+00:00",
        "level": "INFO",
        "service": "Shumilog Tags",
        "logger": "shumilog_tags.services.tag",
        "message": "Tag updated",
        "correlation_id": "abc-123",
        "extra": {"tag_id": "...", "fields": ["description"]}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "service": settings.APP_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        extra = _extra_fields(record)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable lines for local development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        correlation_id = correlation_id_var.get()
        corr_str = f"[{correlation_id[:8]}] " if correlation_id else ""

        line = f"{timestamp} | {record.levelname:8} | {corr_str}{record.name}: {record.getMessage()}"

        extra = _extra_fields(record)
        if extra:
            line += " | " + " ".join(f"{key}={value}" for key, value in extra.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL (default settings.LOG_LEVEL)
        log_format: "json" or "simple" (default settings.LOG_FORMAT)
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    log_format = (log_format or settings.LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else SimpleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # SQL is only interesting with DATABASE_ECHO
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DATABASE_ECHO else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID."""
    return str(uuid.uuid4())


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """
    Tag every log line inside the block with one correlation id.

    Usage:
        with correlation_scope():
            async with session_scope() as db:
                await TagService(db).update_tag(...)
    """
    token = correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield correlation_id_var.get()
    finally:
        correlation_id_var.reset(token)
