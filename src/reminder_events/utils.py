"""Utility functions for the reminder events facade."""

import logging

from .constants import LOG_FORMAT, LOG_LEVEL


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging for applications embedding the manager.

    Args:
        level: Log level name or number; defaults to ``LOG_LEVEL`` from the
            environment
    """
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
