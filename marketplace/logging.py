"""
Logging for the cart store.

Every module logs through ``get_logger(__name__)``, so all records land under
the ``marketplace`` logger. A stdout handler is attached to that logger on
import unless the application already configured the root logger.

    CART_LOG_LEVEL  level for the cart loggers (falls back to LOG_LEVEL, then INFO)
"""

import logging
import os
import sys
from functools import cache
from typing import Optional, TextIO

PACKAGE_LOGGER = "marketplace"
HANDLER_NAME = "marketplace.stdout"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def level_from_env() -> int:
    name = (os.environ.get("CART_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[int] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Attach the cart handler to the package logger.

    Safe to call more than once: the handler is looked up by name and only
    its level and stream are refreshed.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level if level is not None else level_from_env())

    handler = next((h for h in package_logger.handlers if h.get_name() == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)
    return package_logger


if not logging.getLogger().handlers:
    configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def safe_for_log(value: object, max_length: int = 40) -> str:
    """
    Render a user-supplied value (product id, title, storage key) for a log line.

    Control characters are shown escaped so one record cannot fake another
    (CWE-117), and long values are cut at ``max_length``.
    """
    if value is None or value == "":
        return "-"
    text = "".join(ch if ch.isprintable() else repr(ch)[1:-1] for ch in str(value))
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


__all__ = [
    "PACKAGE_LOGGER",
    "LOG_FORMAT",
    "configure_logging",
    "get_logger",
    "safe_for_log",
]
