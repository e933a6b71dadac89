"""Centralised logging configuration utilities."""
from __future__ import annotations

import logging
from typing import Optional

from pronote_average.config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[int] = None) -> None:
    """Configure root logging if it has not been configured yet."""

    if logging.getLogger().handlers:
        return

    if level is None:
        level = logging.getLevelName(get_settings().log_level)
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module specific logger with shared configuration."""

    configure_logging()
    return logging.getLogger(name)
