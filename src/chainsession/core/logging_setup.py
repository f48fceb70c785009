"""
chainsession.core.logging_setup - structlog setup
===================================================

Components log through ``structlog.get_logger()`` and bind their own
context (``component="deployer"`` etc.). This module only applies the
configured level; rendering is left to structlog's defaults.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Apply ``level`` (e.g. "DEBUG") to all structlog loggers.

    Unknown level names fall back to INFO.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
