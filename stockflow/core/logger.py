from __future__ import annotations

import json
import logging
import sys
from typing import Any

from stockflow.core.config import settings

# Attributes present on every LogRecord; anything else came in via ``extra=``
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Library loggers that drown out movement logs at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if not key.startswith("_") and key not in _STANDARD_ATTRS
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields are nested under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = _extra_fields(record)
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format.lower() == "json":
        return JsonFormatter()
    return logging.Formatter(PLAIN_FORMAT)


def init_logging(level: int | None = None) -> None:
    """Attach a stdout handler to the root logger once per process."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(settings.LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level or getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
