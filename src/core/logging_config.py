"""Structured logging configuration.

This module initializes structlog loggers with a stable JSON format.
Components receive a logger at construction instead of looking one up.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a structured module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog bound logger with JSON output.
    """
    _configure_once()
    return structlog.get_logger(name)


def _configure_once() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
