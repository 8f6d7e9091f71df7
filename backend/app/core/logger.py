"""
Logging setup shared across the application.

A single stream handler lives on the "app" logger; module loggers are its
children and propagate to it (and on to the root logger).
"""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
APP_LOGGER = "app"


def _level_name(level: str | None) -> str:
    return (level or os.getenv("LOG_LEVEL", "INFO")).upper()


def _app_logger() -> logging.Logger:
    base = logging.getLogger(APP_LOGGER)
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        base.addHandler(handler)
        base.setLevel(_level_name(None))
    return base


def setup_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Get a named logger under the application logger.

    Args:
        name: Logger name (usually __name__); names outside "app" are nested under it
        level: Optional level name; defaults to LOG_LEVEL env or INFO

    Returns:
        Configured logger
    """
    _app_logger()
    if name != APP_LOGGER and not name.startswith(f"{APP_LOGGER}."):
        name = f"{APP_LOGGER}.{name}"
    log = logging.getLogger(name)
    log.setLevel(_level_name(level))
    return log


logger = setup_logger(APP_LOGGER)
