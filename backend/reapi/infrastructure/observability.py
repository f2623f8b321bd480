"""Logging Setup — one root handler rendering engine records as JSON or text.

Invariants:
    - Every line carries time, level, logger, service and message
    - Context keys passed through `extra=` (collection, operation, username, ...)
      are rendered when set and dropped when None
    - setup_logging installs exactly one engine handler, however often it runs
    - Chatty third-party loggers are held at WARNING

Design Decisions:
    - Timestamps come from the record, not from the moment of formatting
    - Text format keeps the context as trailing key=value pairs so grep works
      on both formats
"""

import json
import logging
from datetime import datetime, timezone

SERVICE_NAME = "reapi"

CONTEXT_KEYS = (
    "collection", "operation", "username", "field",
    "hook", "error_code", "path", "attempt",
)

QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "uvicorn.access")

_HANDLER_NAME = "reapi-root"


def record_context(record: logging.LogRecord) -> dict:
    """Context keys set on `record`, in CONTEXT_KEYS order."""
    context = {}
    for key in CONTEXT_KEYS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            entry["exc_type"] = record.exc_info[0].__name__
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line with the context appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        first, newline, rest = line.partition("\n")
        return f"{first} [{pairs}]{newline}{rest}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the engine handler on the root logger, replacing a previous one."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
