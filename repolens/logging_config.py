"""
Logging setup for RepoLens.

Pipeline code attaches analysis context to its records through `extra=`:

    logger.warning("...", extra={"repository": "octo/demo", "stage": "contributors"})

The context keys (CONTEXT_FIELDS) become top-level fields of the JSON line in
production (ENVIRONMENT=production) and a trailing `key=value` suffix on the
human-readable lines used everywhere else.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Keys pipeline code may pass through `extra=`
CONTEXT_FIELDS = ("repository", "stage", "path", "status_code")

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore")


def record_context(record: logging.LogRecord) -> dict:
    """Context fields set on `record`, skipping those passed as None."""
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with analysis context as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text for terminals; context is appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


def setup_logging() -> None:
    """Install a single stdout handler on the root logger (idempotent across reloads)."""
    production = os.getenv("ENVIRONMENT", "development").lower() == "production"
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if production else ContextFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
