"""
Structured JSON Logging Module.

Provides a production-ready logger that outputs JSON formatted logs
with correlation IDs, timestamps, and log levels.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context vars to store correlation ID and event ID for the current request context
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
event_id_ctx: ContextVar[Optional[str]] = ContextVar("event_id", default=None)


class JSONFormatter(logging.Formatter):
    """
    Formatter that dumps records as JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "service": "aftermath-api",
        }

        cid = correlation_id_ctx.get()
        if cid:
            log_data["correlation_id"] = cid

        eid = event_id_ctx.get()
        if eid:
            log_data["event_id"] = eid

        # Add extra fields if passed
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO"):
    """
    Configures the root logger to use JSON formatting.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    # Request lines come from TracingMiddleware
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("httpx").setLevel("WARNING")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_error(action: str, error: BaseException, logger: Optional[logging.Logger] = None) -> None:
    """Log a failed action with its traceback attached."""
    (logger or logging.getLogger(__name__)).error(
        f"[ERROR] - {action}: {error}",
        exc_info=(type(error), error, error.__traceback__),
        extra={"extra_data": {"action": action, "error_type": type(error).__name__}},
    )
