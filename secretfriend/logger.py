"""Package logging configuration."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "secretfriend",
    level: int | str = logging.INFO,
    propagate: bool = False,
) -> logging.Logger:
    """Configure and return the package logger.

    Args:
        name: Logger name
        level: Logging level (number or name such as "DEBUG")
        propagate: Also hand records to ancestor (root) handlers; off by
            default so a host that configures root logging does not print
            every record twice

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = propagate

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger
