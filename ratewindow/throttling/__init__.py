"""Multi-window execution throttling.

This package provides a throttler that enforces several sliding-window
execution quotas at once for concurrent asyncio tasks and threads.
"""

from ratewindow.throttling.decorators import throttled
from ratewindow.throttling.models import (
    NEVER,
    ExecutionLog,
    RateLimit,
    ThrottlerStats,
)
from ratewindow.throttling.throttler import (
    MultiWindowThrottler,
    get_throttler,
    reset_throttler,
)

__all__ = [
    # Models
    "NEVER",
    "RateLimit",
    "ExecutionLog",
    "ThrottlerStats",
    # Throttler
    "MultiWindowThrottler",
    "get_throttler",
    "reset_throttler",
    "throttled",
]
