"""Logging configuration for vesti-rss.

Standard output carries the XML document, so console logging always goes to
standard error.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .exceptions import ConfigError

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVELS = {
    "trace": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(name: str) -> int:
    """Map a level name (trace, info, warning, error) to a logging level."""
    try:
        return LOG_LEVELS[name.strip().lower()]
    except (KeyError, AttributeError):
        raise ConfigError(f"invalid logging level: {name!r}") from None


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``vesti_rss`` logger.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file to receive a copy of the log
        format_string: Custom log format string

    Returns:
        The package root logger
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    logger = logging.getLogger("vesti_rss")
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the vesti_rss namespace."""
    return logging.getLogger(f"vesti_rss.{name}")
