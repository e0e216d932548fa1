"""
FDC3 Bus Structured Logging
===========================

JSON lines for production, plain text for development. The format and
level come from BusConfig (LOG_FORMAT / LOG_LEVEL).

The engine never configures logging on import; the host application
calls configure_logging() once at startup.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

from .config import BusConfig
from .errors import Fdc3Error

# Routing context attached through `extra=` by the engine modules
EXTRA_FIELDS = ("platform", "intent", "app", "channel")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying routing context when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[1]:
            error = record.exc_info[1]
            log_entry["exception"] = self.formatException(record.exc_info)
            if isinstance(error, Fdc3Error) and error.details:
                log_entry["error_details"] = error.details

        return json.dumps(log_entry, default=str)


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(
    config: Optional[BusConfig] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Install a single root handler formatted per `config`.

    Args:
        config: Settings to use (defaults to BusConfig.from_env())
        stream: Destination (defaults to stdout)

    Returns:
        The installed handler.
    """
    config = config or BusConfig.from_env()

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(config.log_format))
    root.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return handler
