"""Rate limiting for the sync loops."""

from __future__ import annotations

import time
from typing import Any, Callable, ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")


class RateLimiter:
    """Pads each unit of work out to a minimum wall clock interval.

    The work itself is never cancelled; a unit that runs longer than the interval is followed
    by no wait at all. Both sync phases throttle their rpc requests through this class.
    """

    def __init__(
        self,
        interval_ms: int,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        """Initialize the limiter.

        Arguments
        ---------
        interval_ms: int
            The minimum duration of one unit of work plus its trailing wait, in milliseconds.
        clock: Callable[[], float] | None, optional
            Monotonic clock in seconds. Defaults to time.monotonic.
        sleep: Callable[[float], Any] | None, optional
            Called with the remaining seconds. Defaults to time.sleep.
            Passing a threading.Event's `wait` lets a stop request cut the wait short.
        """
        if interval_ms < 1:
            raise ValueError(f"{interval_ms=} must be at least 1")
        self.interval_ms = interval_ms
        self.clock = time.monotonic if clock is None else clock
        self.sleep = time.sleep if sleep is None else sleep
        self.last_elapsed_ms: float = 0
        self.last_wait_ms: float = 0

    def remaining_ms(self, elapsed_ms: float) -> float:
        """Returns how long to wait after a unit of work that took elapsed_ms."""
        return max(self.interval_ms - elapsed_ms, 0)

    def call(self, func: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
        """Run func, then wait out the rest of the interval.

        The wait also happens when func raises, so failures are throttled like successes.

        Arguments
        ---------
        func: Callable[P, R]
            The unit of work.
        *args: P.args
            The positional arguments to call func with
        **kwargs: P.kwargs
            The keyword arguments to call the func with

        Returns
        -------
        R
            The value returned by func.
        """
        start = self.clock()
        try:
            return func(*args, **kwargs)
        finally:
            self.last_elapsed_ms = (self.clock() - start) * 1000
            self.last_wait_ms = self.remaining_ms(self.last_elapsed_ms)
            if self.last_wait_ms > 0:
                self.sleep(self.last_wait_ms / 1000)
