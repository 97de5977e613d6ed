"""Logging configuration for the window alert poller."""

import logging
import sys

_configured = False

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def configure(level: int | str = logging.INFO) -> None:
    """Configure logging for the application.

    Safe to call multiple times - only configures once.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("windowalert")
    root.setLevel(level)
    root.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the 'windowalert' namespace.

    Args:
        name: Logger name (will be prefixed with 'windowalert.')

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(f"windowalert.{name}")


def set_level(level: int | str) -> None:
    """Change the level of the 'windowalert' logger tree."""
    if isinstance(level, str):
        level = level.upper()
    logging.getLogger("windowalert").setLevel(level)
