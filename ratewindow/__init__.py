"""Multi-window rate limiting for asyncio tasks and threads."""

from ratewindow.exceptions import (
    InvalidConfigurationError,
    OperationCancelledError,
    ThrottlerError,
)
from ratewindow.throttling import (
    ExecutionLog,
    MultiWindowThrottler,
    RateLimit,
    ThrottlerStats,
    get_throttler,
    reset_throttler,
    throttled,
)

__version__ = "0.1.0"

__all__ = [
    "ThrottlerError",
    "InvalidConfigurationError",
    "OperationCancelledError",
    "RateLimit",
    "ExecutionLog",
    "ThrottlerStats",
    "MultiWindowThrottler",
    "get_throttler",
    "reset_throttler",
    "throttled",
]
