"""Tests for the throttled decorator."""

import asyncio
import inspect
import threading
from unittest.mock import patch

import pytest

from ratewindow.exceptions import OperationCancelledError
from ratewindow.throttling import MultiWindowThrottler, throttled


class TestThrottledDecorator:
    """Test admission before decorated calls."""

    @pytest.mark.asyncio
    async def test_async_function(self, clock):
        throttler = MultiWindowThrottler([(10.0, 2)], clock=clock)

        @throttled(throttler)
        async def fetch(value):
            return value * 2

        assert await fetch(2) == 4
        assert await fetch(3) == 6
        assert throttler.stats.granted == 2

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(fetch(4), timeout=0.05)

    def test_sync_function(self, clock):
        throttler = MultiWindowThrottler([(10.0, 3)], clock=clock)
        calls = []

        @throttled(throttler)
        def send(message):
            calls.append(message)
            return len(calls)

        assert send("a") == 1
        assert send("b") == 2
        assert throttler.execution_log(0) == [100.0, 100.0]

    def test_preserves_metadata(self, clock):
        throttler = MultiWindowThrottler([(1.0, 1)], clock=clock)

        @throttled(throttler)
        async def fetch_quote():
            """Fetch a quote."""

        assert fetch_quote.__name__ == "fetch_quote"
        assert fetch_quote.__doc__ == "Fetch a quote."
        assert inspect.iscoroutinefunction(fetch_quote)

    @pytest.mark.asyncio
    async def test_cancel_event_skips_call(self, clock):
        throttler = MultiWindowThrottler([(10.0, 1)], clock=clock)
        cancel = asyncio.Event()
        calls = []

        @throttled(throttler, cancel_event=cancel)
        async def work():
            calls.append(1)

        await work()
        cancel.set()
        with pytest.raises(OperationCancelledError):
            await work()
        assert calls == [1]

    def test_sync_cancel_event(self, clock):
        throttler = MultiWindowThrottler([(10.0, 1)], clock=clock)
        cancel = threading.Event()

        @throttled(throttler, cancel_event=cancel)
        def work():
            return "done"

        assert work() == "done"
        cancel.set()
        with pytest.raises(OperationCancelledError):
            work()

    @pytest.mark.asyncio
    async def test_defaults_to_global_throttler(self, clock):
        throttler = MultiWindowThrottler([(10.0, 5)], clock=clock)

        @throttled()
        async def work():
            return True

        with patch("ratewindow.throttling.decorators.get_throttler", return_value=throttler):
            assert await work() is True
        assert throttler.stats.granted == 1
