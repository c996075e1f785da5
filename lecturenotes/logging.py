"""
lecturenotes.logging - Centralized logging configuration.

Provides a simple logging setup with optional verbose mode for debugging.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("lecturenotes")


def get_logger(name: str) -> logging.Logger:
    """Return a child logger of the package logger (e.g. "pipeline")."""
    return logger.getChild(name)


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the lecturenotes package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise INFO level
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.setLevel(level)
