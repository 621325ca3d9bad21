"""TokenKeeper logging.

Log calls keep a constant message and pass token-lifecycle context through
``extra=``::

    logger.info("Token blacklisted", extra={"user_id": user_id, "reason": reason})

Both formats render the context fields listed in ``CONTEXT_FIELDS``: the
JSON format as top-level keys, the dev format as trailing ``key=value``
pairs. Raw tokens and secrets never belong in a log record.
"""

import json
import logging
import sys
from typing import Any, Literal

# Context keys understood by the formatters, in render order
CONTEXT_FIELDS = (
    "user_id",
    "reason",
    "failure",
    "store",
    "removed",
    "revoked",
    "tracked",
    "interval_seconds",
)

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields attached to a record via ``extra=``."""
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, context fields as top-level keys."""

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(get_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable lines with context appended as ``key=value``."""

    def __init__(self):
        super().__init__(fmt=DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = get_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure the root handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable lines
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper()))

    # Quiet third-party loggers
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("tokenkeeper").info("Logging configured: level=%s, format=%s", level, format_type)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the tokenkeeper prefix."""
    return logging.getLogger(f"tokenkeeper.{name}")
