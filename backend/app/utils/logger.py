"""
Structured Logging Configuration for Tubely

JSON log output for the ingestion service, with uvicorn routed through the same
formatter and context enrichment for per-upload fields such as ``video_id`` and
``user_id``.

Usage:
    from app.utils.logger import add_log_context, setup_logging

    setup_logging(log_level="info", json_logs=True)

    logger = logging.getLogger(__name__)
    ctx_logger = add_log_context(logger, video_id="0f8f...", user_id="7c9e...")
    ctx_logger.info("Staging upload")
"""

import json
import logging
import sys
import traceback

from datetime import UTC, datetime
from typing import Any


LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Libraries whose INFO/DEBUG chatter drowns out pipeline logs
THIRD_PARTY_LOGGERS: list[str] = [
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "motor",
    "pymongo",
    "multipart",
    "python_multipart",
    "httpx",
    "httpcore",
    "asyncio",
]

UVICORN_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error")


class LogJSONEncoder(json.JSONEncoder):
    """Falls back to ``str()`` for values the json module cannot encode."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set | frozenset):
            return sorted(obj, key=str)
        return str(obj)


class JSONFormatter(logging.Formatter):
    """
    Formats each log record as a single-line JSON object.

    Fields passed through ``extra={...}`` or a ContextLoggerAdapter are
    collected under an ``extra`` key so they never collide with the core
    fields.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"app.services.video_upload_service","message":"Video upload complete",
         "extra":{"video_id":"0f8f...","user_id":"7c9e...","key":"landscape/x.mp4"}}
    """

    # Standard LogRecord attributes, never treated as extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
            "color_message",
        }
    )

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        extra_fields = self.extract_extra_fields(record)
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, cls=LogJSONEncoder, ensure_ascii=False, separators=(",", ":"))

    def extract_extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        """Return the non-standard attributes attached to a record."""
        return {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }


class StandardFormatter(logging.Formatter):
    """Human-readable ``[time] LEVEL logger: message`` lines for local development."""

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


def setup_logging(
    log_level: str = "info",
    json_logs: bool = True,
    third_party_level: str = "warning",
) -> None:
    """
    Configure application-wide logging.

    Called once from the application lifespan. Replaces any handlers on the
    root logger, routes the uvicorn loggers through the same formatter and
    lowers the verbosity of the storage and database client libraries.

    Args:
        log_level: Application log level name (case-insensitive).
        json_logs: Emit JSON lines when True, plain text otherwise.
        third_party_level: Level applied to THIRD_PARTY_LOGGERS.
    """
    level = LOG_LEVEL_MAP.get(log_level.upper(), logging.INFO)

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_stream_handler(sys.stdout, formatter))

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        stream = sys.stderr if name == "uvicorn.error" else sys.stdout
        uvicorn_logger.addHandler(_stream_handler(stream, formatter))

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s", logging.getLevelName(level), json_logs
    )


def _stream_handler(stream: Any, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    return handler


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra``.

    Values passed explicitly at the call site win over the adapter's context.
    """

    def process(self, msg: str, kwargs: Any) -> tuple[str, Any]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in self.extra.items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **context: Any) -> ContextLoggerAdapter:
    """
    Wrap a logger so every record carries the given context fields.

    Example:
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=user_id)
        ctx_logger.info("Probed aspect ratio", extra={"aspect_ratio": "16:9"})
    """
    return ContextLoggerAdapter(logger, context)


__all__ = [
    "LOG_LEVEL_MAP",
    "THIRD_PARTY_LOGGERS",
    "ContextLoggerAdapter",
    "JSONFormatter",
    "StandardFormatter",
    "add_log_context",
    "setup_logging",
]
