"""Structured logging with JSON output and per-job correlation IDs."""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, ClassVar, TextIO

# Id of the job (or message) the current task is working on
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Key-value pairs attached to every record emitted in the current context
# Note: ContextVar doesn't support default_factory, we handle default in get
log_context_var: ContextVar[dict[str, Any]] = ContextVar("log_context")

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Client libraries that log every request at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3")


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: Optional correlation ID. Generated if not provided.

    Returns:
        The correlation ID that was set.
    """
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    try:
        return dict(log_context_var.get())
    except LookupError:
        return {}


def set_log_context(**kwargs: Any) -> None:
    """Add key-value pairs to the logging context."""
    log_context_var.set({**get_log_context(), **kwargs})


def clear_log_context() -> None:
    log_context_var.set({})


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed to a logging call through ``extra``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS
    }


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, UTC)


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line.

    Output keys: ``timestamp``, ``level``, ``logger``, ``correlation_id``,
    ``message``, ``context`` and ``exception`` when present, followed by
    every ``extra`` field at the top level.
    """

    def __init__(
        self,
        *,
        include_timestamp: bool = True,
        include_path: bool = False,
    ) -> None:
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_path = include_path

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {}
        if self.include_timestamp:
            log_data["timestamp"] = _timestamp(record).isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        if self.include_path:
            log_data["path"] = f"{record.pathname}:{record.lineno}"

        cid = get_correlation_id()
        if cid:
            log_data["correlation_id"] = cid

        log_data["message"] = record.getMessage()

        context = get_log_context()
        if context:
            log_data["context"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(extra_fields(record))
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text output for local runs, colored on a terminal."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, *, colors: bool = True) -> None:
        super().__init__()
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            level,
            f"[{record.name}]",
        ]
        cid = get_correlation_id()
        if cid:
            parts.append(f"[{cid[:8]}]")
        parts.append(record.getMessage())

        fields = {**get_log_context(), **extra_fields(record)}
        parts.extend(f"{key}={value}" for key, value in sorted(fields.items()))

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return a logger.

    Replaces any handler already attached, so calling it twice is safe.
    When configuring the root logger, request logging of the HTTP client
    libraries is raised to WARNING.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_type: Output format ('json' or 'text').
        logger_name: Optional logger name. Defaults to root logger.
        stream: Output stream. Defaults to stdout.

    Returns:
        Configured logger instance.
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(TextFormatter(colors=handler.stream.isatty()))
    logger.addHandler(handler)
    logger.propagate = False

    if logger_name is None:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
