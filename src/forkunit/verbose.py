"""Logging configuration for the harness diagnostic stream."""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def setup_logger(
    debug_file: Path | None = None,
    verbose: bool = False,
    logger_name: str = "forkunit",
) -> logging.Logger:
    """
    Configure and return the logger that carries harness diagnostics.

    Always writes warnings and errors to stderr; with verbose=True stderr also
    gets debug output. When debug_file is given, everything is appended there.

    Args:
        debug_file: Optional path to a debug log file
        verbose: If True, log debug messages to stderr as well
        logger_name: Name of the logger instance (allows multiple independent loggers)

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    # Clear any existing handlers for this specific logger
    logger.handlers.clear()

    logger.disabled = False
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    if debug_file is not None:
        debug_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(debug_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
