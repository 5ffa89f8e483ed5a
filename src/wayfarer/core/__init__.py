"""Core Wayfarer utilities.

This module exports configuration, logging and error types used
throughout the application.
"""

from wayfarer.core.config import Settings, get_settings
from wayfarer.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "bind_correlation_id",
    "clear_context",
]
