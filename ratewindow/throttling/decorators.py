"""Decorator that throttles every call of the wrapped function.

Coroutine functions await `MultiWindowThrottler.admission()`; plain functions
block in `MultiWindowThrottler.wait()`.
"""

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from ratewindow.throttling.throttler import MultiWindowThrottler, get_throttler

F = TypeVar("F", bound=Callable[..., Any])


def throttled(
    throttler: Optional[MultiWindowThrottler] = None,
    cancel_event: Optional[Any] = None,
) -> Callable[[F], F]:
    """Decorator that waits for admission before each call.

    Args:
        throttler: Throttler to admit calls through. Uses the global
            throttler when not provided.
        cancel_event: asyncio.Event for coroutine functions or
            threading.Event for plain functions; setting it makes waiting
            calls raise OperationCancelledError

    Returns:
        Decorated function

    Example:
        >>> api_throttler = MultiWindowThrottler([(1, 5), (60, 100)])
        >>> @throttled(api_throttler)
        ... async def fetch_quote(symbol):
        ...     return await client.get(f"/quote/{symbol}")
    """

    def resolve() -> MultiWindowThrottler:
        return throttler if throttler is not None else get_throttler()

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                await resolve().admission(cancel_event)
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            resolve().wait(cancel_event)
            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
