"""Logging setup for reqflow.

``configure_logging`` attaches handlers to the ``reqflow`` package logger.
Modules log through ``get_logger(__name__)`` and propagate to it, so one call
at startup covers the workflow core, the account layer and the API.
"""

import logging
import logging.handlers
import os
from typing import List, Optional

from reqflow.core.config import Settings, get_settings

PACKAGE_LOGGER = "reqflow"
LOG_FILE = "reqflow.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def parse_level(level: str) -> int:
    """Turn a level name such as ``"info"`` into its ``logging`` constant."""
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Invalid log level: {level}")
    return value


def _build_handlers(settings: Settings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if settings.log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(settings.log_dir, LOG_FILE),
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUPS,
            )
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the package logger from settings.

    Calling it again replaces the handlers installed by the previous call, so
    a changed level or log directory takes effect without duplicate output.

    Args:
        settings: Settings to read ``log_level``, ``log_dir`` and
            ``log_to_file`` from (the cached settings by default)

    Returns:
        The ``reqflow`` logger

    Raises:
        ValueError: If ``log_level`` is not a logging level name
    """
    settings = settings or get_settings()
    level = parse_level(settings.log_level)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(settings):
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name, usually ``__name__``."""
    return logging.getLogger(name)
