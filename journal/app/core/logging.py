"""Structured logging configuration for the journal service.

Standard library logging configured through dictConfig, with an optional
JSON formatter for log aggregation in production.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from journal.app.core.config import settings


# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRIBUTES = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "message",
        "asctime", "taskName", "timestamp", "logger", "level", "source",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as JSON objects for consumption by log aggregation
    systems like ELK Stack or Grafana Loki.
    """

    STANDARD_FIELDS = ["name", "levelname", "message", "timestamp"]

    # Contextual fields for request tracking
    CONTEXT_FIELDS = [
        "request_id",    # Request ID from X-Request-ID header
        "user_id",       # Journal user identifier
        "model",         # Inference model label
        "attempt",       # Generation attempt index (1-based)
        "fingerprint",   # Completion cache key
        "event_type",    # Payment provider event type
        "path",          # Request path
        "method",        # HTTP method
        "status_code",   # HTTP response status
        "duration_ms",   # Request duration in milliseconds
    ]

    def __init__(
        self,
        fields: Optional[list] = None,
        datefmt: Optional[str] = None,
    ):
        super().__init__(datefmt=datefmt)
        self.fields = fields or (self.STANDARD_FIELDS + self.CONTEXT_FIELDS)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string representation of the log record
        """
        log_data: Dict[str, Any] = {}

        record.message = record.getMessage()

        log_data["timestamp"] = datetime.now().astimezone().isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.message

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None and value != "-":
                log_data[field] = value

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key in self.CONTEXT_FIELDS:
                continue
            log_data.setdefault("extra", {})[key] = value

        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Logging filter that adds contextual fields to log records.

    Adds default values for request_id, user_id and the other context
    fields so format strings referencing them never fail.
    """

    CONTEXT_DEFAULTS = {field: None for field in JSONFormatter.CONTEXT_FIELDS}

    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration dictionary.

    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    log_format = getattr(settings, "log_format", "text").lower()
    log_level = getattr(settings, "log_level", "INFO").upper()

    formatters = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s - request_id=%(request_id)s - user_id=%(user_id)s - model=%(model)s"
        },
    }

    if log_format == "json":
        formatters["json"] = {
            "()": "journal.app.core.logging.JSONFormatter",
        }
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stdout,
            "filters": ["context"],
        },
        "error_console": {
            "class": "logging.StreamHandler",
            "level": "ERROR",
            "formatter": default_formatter,
            "stream": sys.stderr,
            "filters": ["context"],
        },
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {
                "()": "journal.app.core.logging.ContextFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "journal": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
            "uvicorn": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


def setup_logging() -> None:
    """Configure logging for the application."""
    logging.config.dictConfig(get_logging_config())

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


def get_logger(name: str = "journal") -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    model: Optional[str] = None,
    **extra
) -> Dict[str, Any]:
    """Create a log context dictionary for use with the extra parameter.

    Example:
        >>> logger.info(
        ...     "Generation attempt finished",
        ...     extra=get_log_context(user_id="u-1", model="gpt-4o-mini", attempt=2)
        ... )
    """
    context = {
        "request_id": request_id,
        "user_id": user_id,
        "model": model,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
