"""Utility functions for the throttler package."""

import math
from datetime import timedelta
from typing import Union

Duration = Union[timedelta, int, float]


def duration_to_seconds(duration: Duration) -> float:
    """Convert a duration into a number of seconds.

    Args:
        duration: A ``timedelta`` or a number of seconds

    Returns:
        Duration in seconds as a float

    Raises:
        TypeError: If the value is neither a timedelta nor a real number
        ValueError: If the value is NaN or infinite

    Examples:
        >>> duration_to_seconds(timedelta(milliseconds=250))
        0.25
        >>> duration_to_seconds(2)
        2.0
    """
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    # bool is an int subclass, but True is never a meaningful duration
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise TypeError(f"Duration must be a timedelta or a number of seconds, got {type(duration).__name__}")
    seconds = float(duration)
    if not math.isfinite(seconds):
        raise ValueError(f"Duration must be finite, got {duration!r}")
    return seconds
