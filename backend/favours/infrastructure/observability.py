"""Favour Logging — formatters and settings-driven setup for the favours logger tree.

Invariants:
    - Only the "favours" logger is configured; the embedding app's root logger is left alone
    - configure_logging() is idempotent: a second call replaces the handler it installed
    - Every record carries timestamp, level, logger and message; favour context fields
      (favour_id, viewer_id, phase, action, storage_path, ...) are added when set
    - Credentials never reach the output: only the whitelisted context fields are read

Design Decisions:
    - log_format "json" for deployed environments, "text" for local runs; both render
      the same context fields so grepping by favour_id works either way
    - Handler tagged with an attribute instead of kept in a module global, so tests can
      install and remove it without reset hooks
"""

import json
import logging
from datetime import datetime, timezone

from favours.config import Settings

LOGGER_NAME = "favours"

CONTEXT_FIELDS = (
    "favour_id", "viewer_id", "phase", "action", "storage_path",
    "error_code", "status_code", "attempt",
)

_HANDLER_TAG = "_favours_handler"


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable line with favour context appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{k}={v}" for k, v in _context(record).items())
        return f"{line} [{pairs}]" if pairs else line


def configure_logging(settings: Settings) -> logging.Handler:
    """Install (or replace) the favours handler using log_level / log_format."""
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_TAG, False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextTextFormatter())
    setattr(handler, _HANDLER_TAG, True)

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return handler
