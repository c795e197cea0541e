"""
Logging configuration for healsim.

Diagnostic logging only; the simulated system log lives in the entity
store. Provides a human-readable format for development and a JSON-ish
line format for piping into other tools.
"""

import logging
import sys
from datetime import UTC, datetime


class HealsimFormatter(logging.Formatter):
    """Formatter that stamps every record with an ISO timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Configure logging for healsim.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output one JSON object per line
        handler: Handler to attach instead of a stdout stream handler.
            The dashboard passes Textual's handler so output does not
            draw over the screen.

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        fmt = (
            '{"timestamp": "%(timestamp)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "message": "%(message)s"}'
        )
    else:
        fmt = "%(timestamp)s | %(levelname)-8s | %(name)s | %(message)s"

    handler.setFormatter(HealsimFormatter(fmt))
    root.addHandler(handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
