"""
Logging setup for QuizForge
JSON lines in production and in log files, plain text on a dev console
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path

from app.core.config import settings

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, ``extra`` fields included"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
            "environment": settings.ENVIRONMENT,
        }
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _file_handler(path: str) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging() -> None:
    """Replace the root handlers according to settings"""
    console = logging.StreamHandler(sys.stdout)
    if settings.is_production():
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(settings.LOG_FORMAT, "%Y-%m-%d %H:%M:%S"))

    handlers = [console]
    if settings.LOG_FILE:
        handlers.append(_file_handler(settings.LOG_FILE))

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(settings.LOG_LEVEL.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"log_level": settings.LOG_LEVEL, "log_file": settings.LOG_FILE},
    )
