"""Throttling data models.

This module contains the limit definition, the per-limit execution log and
the diagnostic counters.
"""

from dataclasses import dataclass, field
from typing import List

from ratewindow.core.utils import Duration, duration_to_seconds
from ratewindow.exceptions import InvalidConfigurationError

# Timestamp that is older than any clock reading, so `sentinel + window`
# is always in the past.
NEVER = float("-inf")


@dataclass(frozen=True)
class RateLimit:
    """At most `max_executions` executions within any `window` seconds."""
    window: float
    max_executions: int

    @classmethod
    def of(cls, window: Duration, max_executions: int) -> "RateLimit":
        """Build a limit from a timedelta or a number of seconds."""
        try:
            seconds = duration_to_seconds(window)
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(str(e)) from e
        limit = cls(window=seconds, max_executions=max_executions)
        limit.validate()
        return limit

    def validate(self) -> None:
        """Raise InvalidConfigurationError unless the limit is usable."""
        if isinstance(self.max_executions, bool) or not isinstance(self.max_executions, int):
            raise InvalidConfigurationError(
                f"max_executions must be an integer, got {self.max_executions!r}"
            )
        if self.max_executions < 1:
            raise InvalidConfigurationError(
                f"max_executions must be at least 1, got {self.max_executions}"
            )
        if not self.window > 0:
            raise InvalidConfigurationError(
                f"window must be positive, got {self.window!r}"
            )


@dataclass
class ExecutionLog:
    """Ring buffer with the timestamps of the last `max_executions` grants.

    The slot under the cursor always holds the oldest timestamp, because
    slots are overwritten in the order they were written.
    """
    limit: RateLimit
    slots: List[float] = field(init=False)
    position: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.slots = [NEVER] * self.limit.max_executions

    @property
    def capacity(self) -> int:
        return len(self.slots)

    def next_slot_at(self) -> float:
        """Earliest instant at which the oldest slot leaves the window."""
        return self.slots[self.position] + self.limit.window

    def record(self, now: float) -> None:
        self.slots[self.position] = now
        self.position = (self.position + 1) % len(self.slots)

    def snapshot(self) -> List[float]:
        """Recorded timestamps, oldest first, without unused slots."""
        ordered = self.slots[self.position:] + self.slots[:self.position]
        return [ts for ts in ordered if ts != NEVER]

    def count_since(self, since: float) -> int:
        """Number of recorded timestamps strictly after `since`."""
        return sum(1 for ts in self.slots if ts > since)


@dataclass
class ThrottlerStats:
    """Counters for monitoring a throttler."""
    granted: int = 0
    waits: int = 0
    cancelled: int = 0
