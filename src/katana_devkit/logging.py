"""Logging utilities for katana-devkit commands."""

import logging
from typing import Optional

_LOGGER_NAME = "katana_devkit"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-scoped logger under the katana_devkit hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure the katana_devkit logger with a single console handler.

    Args:
        verbose: Log at DEBUG instead of INFO

    Returns:
        The configured package logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations don't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[katana-devkit] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    return logger
