"""Shared fixtures for throttler tests."""

import pytest

from ratewindow.throttling import reset_throttler


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def assert_no_over_admission(grants, limits):
    """Assert no window (t - W, t] ever holds more than N grants."""
    ordered = sorted(grants)
    for window, max_executions in limits:
        for i in range(len(ordered) - max_executions):
            gap = ordered[i + max_executions] - ordered[i]
            assert gap >= window - 1e-9, (
                f"{max_executions + 1} grants within {gap:.6f}s, limit is "
                f"{max_executions} per {window}s"
            )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_global_throttler():
    reset_throttler()
    yield
    reset_throttler()


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def no_over_admission():
    return assert_no_over_admission
