"""Logging configuration for the announcements service."""

import logging
import sys
from typing import Optional

from app.core.config import settings


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Setup application-wide logging configuration.

    WHY: Every module logs through ``logging.getLogger(__name__)`` and passes
    structured context via ``extra``; this only decides level and format.
    Containers collect stdout, so there is no file handler.

    Args:
        log_level: Optional log level override. Falls back to settings.LOG_LEVEL,
            then DEBUG if settings.DEBUG else INFO
    """
    level_name = log_level or settings.LOG_LEVEL
    if level_name:
        level = getattr(logging, level_name.upper(), logging.INFO)
    else:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates when the app is re-created
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by the engine, keep the logger itself quiet
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
