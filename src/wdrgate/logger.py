"""
Logging setup for WdrGate.

Outputs JSON-formatted log lines by default, suitable for log aggregation.
Modules log through ``logging.getLogger(__name__)``; this module only
decides where those records go and how they look.

Usage:
    from wdrgate.logger import configure_logging

    configure_logging(level="debug", fmt="text")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

ROOT_LOGGER = "wdrgate"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()

        # Audit lines are already JSON; embed them instead of double-encoding.
        if record.name.startswith(f"{ROOT_LOGGER}.audit"):
            try:
                return json.dumps(json.loads(message))
            except ValueError:
                pass

        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": message,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    level: str = "info",
    fmt: str = "json",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Install a single stream handler on the ``wdrgate`` logger.

    Calling it again replaces the previous handler.

    Args:
        level: debug, info, warning or error
        fmt: json or text
        stream: Output stream (stdout by default)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_LEVELS.get(level.lower(), logging.INFO))

    for existing in list(logger.handlers):
        if getattr(existing, "_wdrgate_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler._wdrgate_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    return logger
