"""
Logging for shopcart.

The package logs under the ``shopcart`` logger. When the host has not set up
logging, a stdout handler is attached to that logger on import; a configured
host keeps full control.

Usage:
    from shopcart.logging import get_logger
    logger = get_logger(__name__)
"""

import logging
import os
import sys
from functools import cache

PACKAGE_LOGGER = "shopcart"

_FORMAT_DEV = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_FORMAT_PROD = "%(levelname)s - %(name)s - %(message)s"

# Control characters that could forge log lines (CWE-117)
_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


def _level_from_env() -> int:
    """LOG_LEVEL env var, INFO when unset or unknown."""
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None, force: bool = False) -> logging.Logger:
    """
    Attach a stdout handler to the package logger.

    Does nothing when the package or root logger already has handlers,
    unless ``force`` is set.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not force and (package_logger.handlers or logging.getLogger().handlers):
        return package_logger

    level = level if level is not None else _level_from_env()
    production = os.environ.get("SHOPCART_ENV") == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT_PROD if production else _FORMAT_DEV))

    package_logger.setLevel(level)
    package_logger.addHandler(handler)

    # Upstash REST calls go through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return package_logger


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Logger for a shopcart module (pass ``__name__``)."""
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: object, length: int = 8) -> str:
    """Row ids, item ids and instance names: escaped and cut to ``length`` chars."""
    if id_value is None or id_value == "":
        return "N/A"
    return str(id_value).translate(_ESCAPES)[:length]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Free-form text such as store keys: escaped, with an ellipsis when cut."""
    if not value:
        return "N/A"
    safe_value = str(value).translate(_ESCAPES)
    return safe_value if len(safe_value) <= max_length else safe_value[:max_length] + "..."


__all__ = [
    "configure_logging",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
