"""Loguru sink setup shared by the API server and the CLI."""

from __future__ import annotations

import sys

from loguru import logger

from adaptive_quiz.config import Settings, get_settings


def configure_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """Replace the default loguru sink with the configured ones."""
    settings = settings or get_settings()
    level = level or settings.log_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            level=level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )
