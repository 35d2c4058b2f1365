"""Logging configuration for the renderer.

Loggers live under the "mmlt" namespace. Modules obtain theirs through
get_logger(), and scripts call setup_logging() once at startup.

Example:
    >>> import logging
    >>> from src.mmlt.config import get_logger, setup_logging
    >>> setup_logging(logging.DEBUG)
    >>> logger = get_logger("integrator")  # "mmlt.integrator"
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOGGER_NAMESPACE = "mmlt"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        log_file: Optional file path to write logs to.
        format_string: Optional custom format string.

    Returns:
        The configured "mmlt" logger.
    """
    if format_string is None:
        format_string = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
    formatter = logging.Formatter(format_string, datefmt="%H:%M:%S")

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name under the mmlt namespace.

    Args:
        name: Logger name (will be prefixed with 'mmlt.').

    Returns:
        Logger instance.
    """
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
