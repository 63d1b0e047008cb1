"""Logging configuration for the MinIO bootstrapper."""

import json
import logging
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Fields: timestamp, level, logger, message, plus the exception if any.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure root logging with the specified level and format.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: 'text' for Rich-formatted output, 'json' for structured lines.
    """
    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    numeric_level = getattr(logging, level.upper())
    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if fmt == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True, legacy_windows=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    handler.setLevel(numeric_level)
    root.addHandler(handler)

    # botocore logs every request at DEBUG
    logging.getLogger("botocore").setLevel(max(numeric_level, logging.INFO))
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
