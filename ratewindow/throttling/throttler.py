"""Multi-window execution throttler.

Callers wait before each execution until performing it would not exceed any
of the configured limits, where a limit allows at most N executions within
any sliding window of W seconds. Each limit keeps a ring buffer of its last
N grant timestamps, so the admission test is O(1) per limit: the slot under
the cursor is the oldest grant, and a new one is allowed once that grant has
left the window.
"""

import asyncio
import dataclasses
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ratewindow.core.config import Settings
from ratewindow.core.config import settings as default_settings
from ratewindow.core.logging import get_log_context, get_logger
from ratewindow.core.utils import Duration
from ratewindow.exceptions import InvalidConfigurationError, OperationCancelledError
from ratewindow.throttling.models import ExecutionLog, RateLimit, ThrottlerStats

LimitSpec = Union[RateLimit, Tuple[Duration, int]]


class MultiWindowThrottler:
    """Throttler enforcing several sliding-window limits at once.

    Thread-safe and task-safe: one lock guards all execution logs and is
    held only while checking and recording, never while waiting. Asyncio
    tasks use `admission()`, threads use `wait()`, and both may share one
    instance.

    Grants are not FIFO. Every waiting caller re-reads the clock when it
    wakes up and races for the lock; the first one to find all windows
    satisfied is admitted.

    Usage:
        throttler = MultiWindowThrottler([
            (timedelta(seconds=1), 5),
            (timedelta(minutes=1), 100),
        ])

        async def call_api():
            await throttler.admission()
            ...
    """

    def __init__(
        self,
        limits: Iterable[LimitSpec],
        *,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
        name: str = "throttler",
    ):
        """Initialize the throttler.

        Args:
            limits: Ordered limits, each a RateLimit or a (window, max_executions)
                pair with the window as a timedelta or a number of seconds
            clock: Monotonic clock returning seconds
            logger: Logger for admission diagnostics (module logger by default)
            name: Name used in log records and stats

        Raises:
            InvalidConfigurationError: If no limits are given, or any limit has
                a non-positive window or fewer than one execution
        """
        if limits is None:
            raise InvalidConfigurationError("limits must not be None")
        if isinstance(limits, RateLimit):
            limits = [limits]

        parsed = [self._coerce_limit(index, item) for index, item in enumerate(limits)]
        if not parsed:
            raise InvalidConfigurationError("At least one limit is required")

        self.name = name
        self._limits: Tuple[RateLimit, ...] = tuple(parsed)
        self._logs: List[ExecutionLog] = [ExecutionLog(limit) for limit in parsed]
        self._clock = clock
        self._logger = logger if logger is not None else get_logger(__name__)
        self._lock = threading.Lock()
        self._stats = ThrottlerStats()

    @staticmethod
    def _coerce_limit(index: int, item: Any) -> RateLimit:
        try:
            if isinstance(item, RateLimit):
                item.validate()
                return item
            if isinstance(item, (tuple, list)) and len(item) == 2:
                return RateLimit.of(item[0], item[1])
        except InvalidConfigurationError as e:
            raise InvalidConfigurationError(e.message, limit_index=index) from e
        raise InvalidConfigurationError(
            f"Expected RateLimit or (window, max_executions), got {item!r}",
            limit_index=index,
        )

    @classmethod
    def per_time(
        cls,
        window: Duration,
        max_executions: int,
        **kwargs: Any,
    ) -> "MultiWindowThrottler":
        """Create a throttler with a single limit."""
        return cls([(window, max_executions)], **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        **kwargs: Any,
    ) -> "MultiWindowThrottler":
        """Create a throttler from the configured `throttle_limits`."""
        config = settings or default_settings
        kwargs.setdefault("name", config.throttle_name)
        return cls(config.throttle_limits, **kwargs)

    @property
    def limits(self) -> Tuple[RateLimit, ...]:
        return self._limits

    @property
    def stats(self) -> ThrottlerStats:
        """Copy of the current counters."""
        with self._lock:
            return dataclasses.replace(self._stats)

    def _try_acquire(self) -> Tuple[float, Optional[float]]:
        """Check every window and record a grant if all of them allow it.

        Returns:
            (now, None) when granted, (now, wait_seconds) otherwise
        """
        with self._lock:
            now = self._clock()
            wait = 0.0
            blocking: Optional[int] = None
            for index, log in enumerate(self._logs):
                next_slot_at = log.next_slot_at()
                if now < next_slot_at and next_slot_at - now > wait:
                    wait = next_slot_at - now
                    blocking = index

            if blocking is None:
                for log in self._logs:
                    log.record(now)
                self._stats.granted += 1
            else:
                self._stats.waits += 1
                position = self._logs[blocking].position
                capacity = self._logs[blocking].capacity

        if blocking is None:
            self._logger.debug(
                "Can execute now at %.6f.",
                now,
                extra=get_log_context(throttler=self.name),
            )
            return now, None

        self._logger.debug(
            "Position: %s/%s. Cannot execute now, limit #%s is full until %.6f. Sleeping for %.6fs.",
            position, capacity, blocking, now + wait, wait,
            extra=get_log_context(
                throttler=self.name,
                limit_index=blocking,
                position=position,
                capacity=capacity,
                wait_seconds=wait,
            ),
        )
        return now, wait

    def _mark_cancelled(self) -> None:
        with self._lock:
            self._stats.cancelled += 1
        self._logger.debug(
            "Admission cancelled while waiting.",
            extra=get_log_context(throttler=self.name),
        )

    async def admission(self, cancel_event: Optional[asyncio.Event] = None) -> float:
        """Wait until one more execution is allowed by every limit, then record it.

        Args:
            cancel_event: Optional event; setting it aborts the wait

        Returns:
            Clock reading at which the execution was granted

        Raises:
            OperationCancelledError: If `cancel_event` fires before the grant
            asyncio.CancelledError: If the awaiting task itself is cancelled
        """
        while True:
            now, wait = self._try_acquire()
            if wait is None:
                return now

            if cancel_event is not None and cancel_event.is_set():
                self._mark_cancelled()
                raise OperationCancelledError()

            try:
                if cancel_event is None:
                    await asyncio.sleep(wait)
                    continue
                await asyncio.wait_for(cancel_event.wait(), timeout=wait)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                self._mark_cancelled()
                raise

            self._mark_cancelled()
            raise OperationCancelledError()

    def wait(self, cancel_event: Optional[threading.Event] = None) -> float:
        """Blocking variant of `admission()` for OS threads.

        Args:
            cancel_event: Optional event; setting it aborts the wait

        Returns:
            Clock reading at which the execution was granted

        Raises:
            OperationCancelledError: If `cancel_event` fires before the grant
        """
        while True:
            now, wait = self._try_acquire()
            if wait is None:
                return now

            if cancel_event is None:
                time.sleep(wait)
            elif cancel_event.wait(wait):
                self._mark_cancelled()
                raise OperationCancelledError()

    def execution_log(self, index: int) -> List[float]:
        """Grant timestamps recorded for one limit, oldest first."""
        with self._lock:
            return self._logs[index].snapshot()

    def get_stats(self) -> Dict[str, Any]:
        """Get current throttler statistics.

        Returns:
            Dictionary with counters and per-limit window usage
        """
        with self._lock:
            now = self._clock()
            limits = []
            for limit, log in zip(self._limits, self._logs):
                in_window = log.count_since(now - limit.window)
                limits.append({
                    "window_seconds": limit.window,
                    "max_executions": limit.max_executions,
                    "in_window": in_window,
                    "available": limit.max_executions - in_window,
                    "utilization": round(in_window / limit.max_executions, 4),
                })
            return {
                "name": self.name,
                "granted": self._stats.granted,
                "waits": self._stats.waits,
                "cancelled": self._stats.cancelled,
                "limits": limits,
            }

    def __repr__(self) -> str:
        limits = ", ".join(f"{limit.max_executions}/{limit.window:g}s" for limit in self._limits)
        return f"{type(self).__name__}(name={self.name!r}, limits=[{limits}])"


# Global instance
_throttler: Optional[MultiWindowThrottler] = None
_throttler_lock = threading.Lock()


def get_throttler() -> MultiWindowThrottler:
    """Get the global throttler instance built from settings.

    Returns:
        MultiWindowThrottler singleton instance
    """
    global _throttler
    if _throttler is None:
        with _throttler_lock:
            if _throttler is None:
                _throttler = MultiWindowThrottler.from_settings()
    return _throttler


def reset_throttler() -> None:
    """Reset the global throttler (useful for testing)."""
    global _throttler
    with _throttler_lock:
        _throttler = None
