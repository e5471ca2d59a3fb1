"""Tests for throttling data models."""

import math
from datetime import timedelta

import pytest

from ratewindow.core.utils import duration_to_seconds
from ratewindow.exceptions import InvalidConfigurationError
from ratewindow.throttling.models import NEVER, ExecutionLog, RateLimit, ThrottlerStats


class TestRateLimit:
    """Test RateLimit construction and validation."""

    def test_of_timedelta(self):
        limit = RateLimit.of(timedelta(milliseconds=250), 4)
        assert limit == RateLimit(window=0.25, max_executions=4)

    def test_of_seconds(self):
        assert RateLimit.of(2, 1).window == 2.0

    def test_is_immutable(self):
        limit = RateLimit(window=1.0, max_executions=1)
        with pytest.raises(AttributeError):
            limit.window = 2.0

    @pytest.mark.parametrize(
        ("window", "max_executions"),
        [(1.0, 0), (1.0, -3), (0, 1), (-1.0, 1), (float("nan"), 1)],
    )
    def test_validate_rejects(self, window, max_executions):
        with pytest.raises(InvalidConfigurationError):
            RateLimit(window=window, max_executions=max_executions).validate()

    def test_of_rejects_infinite_window(self):
        with pytest.raises(InvalidConfigurationError):
            RateLimit.of(float("inf"), 1)


class TestExecutionLog:
    """Test the ring buffer of grant timestamps."""

    def test_initial_state_is_grantable(self):
        log = ExecutionLog(RateLimit(window=5.0, max_executions=3))

        assert log.capacity == 3
        assert log.position == 0
        assert log.slots == [NEVER, NEVER, NEVER]
        assert log.next_slot_at() == -math.inf
        assert log.snapshot() == []

    def test_cursor_is_not_a_constructor_argument(self):
        with pytest.raises(TypeError):
            ExecutionLog(RateLimit(window=5.0, max_executions=3), position=7)

    def test_record_wraps_around(self):
        log = ExecutionLog(RateLimit(window=5.0, max_executions=3))

        for ts in (1.0, 2.0, 3.0):
            log.record(ts)
        assert log.position == 0
        assert log.next_slot_at() == 6.0

        log.record(7.0)
        assert log.position == 1
        assert log.slots == [7.0, 2.0, 3.0]
        assert log.next_slot_at() == 7.0
        assert log.snapshot() == [2.0, 3.0, 7.0]

    def test_count_since(self):
        log = ExecutionLog(RateLimit(window=5.0, max_executions=4))
        for ts in (1.0, 2.0, 3.0):
            log.record(ts)

        assert log.count_since(0.0) == 3
        assert log.count_since(2.0) == 1
        assert log.count_since(3.0) == 0


def test_stats_defaults():
    assert ThrottlerStats() == ThrottlerStats(granted=0, waits=0, cancelled=0)


class TestDurationToSeconds:
    """Test duration conversion."""

    def test_timedelta(self):
        assert duration_to_seconds(timedelta(minutes=1, milliseconds=500)) == 60.5

    def test_numbers(self):
        assert duration_to_seconds(3) == 3.0
        assert duration_to_seconds(0.125) == 0.125

    @pytest.mark.parametrize("value", ["1s", None, True])
    def test_rejects_other_types(self, value):
        with pytest.raises(TypeError):
            duration_to_seconds(value)

    def test_rejects_nan(self):
        with pytest.raises(ValueError):
            duration_to_seconds(float("nan"))
