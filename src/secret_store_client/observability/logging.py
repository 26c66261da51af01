"""Client loggers share one UTC handler on the package root logger.

Names outside the package are nested under it, so applications can tune or
silence the whole client with `logging.getLogger("secret_store_client")`.

Usage example:
    from secret_store_client.observability.logging import get_logger

    logger = get_logger("secret_store_client.executor")
    logger.debug("Retry %s after %.2fs", attempt, delay)
"""

from __future__ import annotations

import logging
import time

ROOT_LOGGER_NAME = "secret_store_client"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _utc_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    handler.setFormatter(formatter)
    return handler


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(_utc_handler())
        root.setLevel(logging.INFO)
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a client logger that writes through the package root handler.

    Args:
        name: Module-qualified name. Names outside the package are prefixed.
    """
    _root_logger()
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
