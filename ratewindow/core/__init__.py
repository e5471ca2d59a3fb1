"""Core utilities for the throttler package."""

from ratewindow.core.config import Settings, parse_duration, parse_limits, settings
from ratewindow.core.logging import get_log_context, get_logger, setup_logging
from ratewindow.core.utils import duration_to_seconds

__all__ = [
    "Settings",
    "settings",
    "parse_duration",
    "parse_limits",
    "get_logger",
    "get_log_context",
    "setup_logging",
    "duration_to_seconds",
]
