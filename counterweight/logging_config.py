"""
Logging setup — one format for every counterweight.* logger.
"""

from __future__ import annotations

import logging

from counterweight.config import settings

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Configure root logging and return the package logger."""
    logging.basicConfig(
        level=level or settings.log_level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    return logging.getLogger("counterweight")
