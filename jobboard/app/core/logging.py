"""Logging setup for the job-board client.

Host applications call ``setup_logging()`` once; library modules only ever
call ``get_logger(__name__)``. Request fields (client, method, url, status,
timing) travel on records via ``extra=get_log_context(...)``.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from jobboard.app.core.config import settings


# Request fields the client attaches to its records
REQUEST_FIELDS = (
    "client",
    "method",
    "url",
    "status_code",
    "duration_ms",
    "retry_after_ms",
)

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "asctime", "taskName",
) + REQUEST_FIELDS)

_TEXT_FORMATS = {
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "structured": (
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        " - client=%(client)s method=%(method)s status_code=%(status_code)s"
    ),
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Request fields are promoted to top-level keys when set; other
    ``extra=`` attributes are grouped under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }
        payload.update(
            (field, getattr(record, field))
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        )

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Give every record the request fields so text formats can use them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in REQUEST_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


def get_logging_config() -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping for the configured level and format."""
    log_format = getattr(settings, "log_format", "text").lower()
    log_level = getattr(settings, "log_level", "INFO").upper()

    formatters: Dict[str, Any] = {
        "standard": {"format": _TEXT_FORMATS["text"]},
        "structured": {"format": _TEXT_FORMATS["structured"]},
    }
    if log_format == "json":
        formatters["json"] = {"()": JSONFormatter}
        formatter = "json"
    elif log_format == "structured":
        formatter = "structured"
    else:
        formatter = "standard"

    def stream_handler(stream, level: str) -> Dict[str, Any]:
        return {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": formatter,
            "stream": stream,
            "filters": ["context"],
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {"context": {"()": ContextFilter}},
        "handlers": {
            "console": stream_handler(sys.stdout, log_level),
            "error_console": stream_handler(sys.stderr, "ERROR"),
        },
        "loggers": {
            "jobboard": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
        },
        "root": {"level": log_level, "handlers": ["console"]},
    }


def setup_logging() -> None:
    """Configure logging for the client library's host process."""
    logging.config.dictConfig(get_logging_config())

    # httpx logs every request at INFO; the client logs its own
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str = "jobboard") -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    client: Optional[str] = None,
    method: Optional[str] = None,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    **extra
) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for a log call, dropping unset fields.

    Example:
        >>> logger.warning(
        ...     "Rate limited, retrying",
        ...     extra=get_log_context(client="rapidapi", status_code=429),
        ... )
    """
    context = {"client": client, "method": method, "url": url, "status_code": status_code}
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
