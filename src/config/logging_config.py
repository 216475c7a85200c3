"""Logging setup."""

import logging
from typing import Optional
from .settings import settings

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, format_str: Optional[str] = None):
    """
    Configure root logging.

    Args:
        level: log level name, defaults to LOG_LEVEL from settings
        format_str: log format, defaults to DEFAULT_FORMAT
    """
    level_name = (level or settings.log_level or "INFO").upper()
    log_level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=format_str or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler()],
    )


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for ``name``.

    Args:
        name: logger name, usually __name__

    Returns:
        logging.Logger
    """
    return logging.getLogger(name)
