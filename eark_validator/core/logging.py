"""
Logging setup for the validator service.

Log lines go to stdout either as plain text or as one JSON object per line.
Each line carries the request ID of the test bed call it belongs to, so the
several calls of one validation session can be followed through the logs.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict

from eark_validator.core.config import settings
from eark_validator.core.error_handling import request_id_var

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers and the level they are capped at
_NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


class RequestIDFilter(logging.Filter):
    """Copy the current call's request ID onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with the service identity."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "service": settings.SERVICE_ID,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", "-")
        if settings.LOG_INCLUDE_REQUEST_ID and request_id != "-":
            entry["request_id"] = request_id

        session_id = getattr(record, "session_id", None)
        if session_id:
            entry["session_id"] = session_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


def _build_formatter() -> logging.Formatter:
    if settings.LOG_FORMAT.lower() == "json":
        return JSONFormatter()
    if settings.LOG_INCLUDE_REQUEST_ID:
        return logging.Formatter(TEXT_FORMAT + " [%(request_id)s]")
    return logging.Formatter(TEXT_FORMAT)


def setup_logging() -> None:
    """
    Configure the root logger from LOG_LEVEL, LOG_FORMAT and LOG_INCLUDE_REQUEST_ID.

    Safe to call more than once; previously installed handlers are replaced.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(RequestIDFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name in ("uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(log_level)
    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, log_level))
