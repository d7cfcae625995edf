"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Modules call ``get_logger(__name__)`` and log snake_case events
with keyword fields instead of formatted message strings.
"""

from __future__ import annotations

from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    if not structlog.is_configured():
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            cache_logger_on_first_use=True,
        )
    return structlog.get_logger(name)
