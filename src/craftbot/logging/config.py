# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Centralized logging configuration for craftbot.

This module provides structured logging using structlog, configured to:
- Write all logs to stderr
- Respect CRAFTBOT_LOG_LEVEL environment variable (default: INFO)
- Use ISO timestamps and console rendering
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from craftbot.settings import Settings

__all__ = ["get_logger", "configure_logging"]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog for craftbot.

    This should be called once at application startup.
    Respects CRAFTBOT_LOG_LEVEL environment variable via Settings (default: INFO).

    Args:
        settings: Settings instance (will be created if None)
    """
    if settings is None:
        from craftbot.settings import Settings

        settings = Settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # uvicorn logs through the standard library; keep it on the same stream.
    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
