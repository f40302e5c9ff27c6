"""JSON logs for the messenger service.

Every record becomes one JSON object. Live channel code attaches the
connection and identity it acted on through ``live_context()``, so a single
socket or user can be followed across registry and dispatcher records:

    logger.info("Connection closed", extra=live_context(connection_id="ab12", identity="u1"))

    {"level": "INFO", "message": "Connection closed",
     "context": {"connection_id": "ab12", "identity": "u1"}, ...}
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

# Third-party loggers that are too chatty at INFO on a busy socket server
QUIET_LOGGERS = ("uvicorn.access", "aiosqlite")


def live_context(
    connection_id: str | None = None,
    identity: str | None = None,
    **fields: Any,
) -> dict:
    """Build the ``extra`` mapping for a live channel log record."""
    context = {"connection_id": connection_id, "identity": identity, **fields}
    return {"context": {key: value for key, value in context.items() if value is not None}}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with live channel context when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Identities and timestamps may be non-JSON types
        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Route all service logs to a rotating JSON file and stdout.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Defaults to the LOG_LEVEL env var, then INFO.
        log_file: Log file path. Defaults to 04_logs/app.log.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JSONFormatter},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": str(log_path),
                    "maxBytes": 10 * 1024 * 1024,
                    "backupCount": 5,
                    "formatter": "json",
                    "encoding": "utf-8",
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {
                "level": level,
                "handlers": ["file", "console"],
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Get a module logger, typically get_logger(__name__)."""
    return logging.getLogger(name)
