# File: app/core/config/logging_config.py

import logging
import sys
from typing import Optional

from .settings import settings

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: Optional[str] = None) -> None:
    """
    Sets up a single stderr handler on the root logger.
    The level defaults to LOG_LEVEL; unknown names fall back to INFO.
    """
    name = (level or settings.LOG_LEVEL).casefold()
    root_logger = logging.getLogger()
    root_logger.setLevel(_LEVEL_MAP.get(name, logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    ))
    root_logger.addHandler(handler)
