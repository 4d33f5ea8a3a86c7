"""Wrapper functions for retrying."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Callable, NamedTuple, ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")


class RetryCallOptions(NamedTuple):
    """Parameters for the exponential backoff.

    Attempts are not interrupted here; a stalled rpc call is bounded by the provider request timeout.
    """

    start_latency: float
    """Seconds to wait after the first failure."""
    backoff_multiplier: float
    """Factor applied to the wait after each further failure."""


DEFAULT_RETRY_OPTIONS = RetryCallOptions(start_latency=0.5, backoff_multiplier=2)


def retry_call(
    retry_count: int,
    retry_exception_check: Callable[[Exception], bool] | None,
    func: Callable[P, R],
    *args: P.args,
    options: RetryCallOptions = DEFAULT_RETRY_OPTIONS,  # type: ignore
    **kwargs: P.kwargs,
) -> R:
    """Retry a function call.

    Arguments
    ---------
    retry_count: int
        The number of attempts to make, must be at least 1.
    retry_exception_check: Callable[[Exception], bool] | None
        A function that takes as an argument an exception and returns True if we want to retry on that exception
        If None, will retry for all exceptions
    func: Callable[P, R]
        The function to call.
    *args: P.args
        The positional arguments to call func with
    options: RetryCallOptions
        Parameters for the exponential backoff.
    **kwargs: P.kwargs
        The keyword arguments to call the func with

    Returns
    -------
    R
        Returns the value of the called function
    """
    # TODO can't make a default for `retry_exception_check` due to *args and **kwargs,
    # so we need to explicitly pass in this parameter
    if retry_count < 1:
        raise ValueError(f"{retry_count=} must be at least 1")
    exception = None
    for attempt_number in range(retry_count):
        try:
            return func(*args, **kwargs)
        # Catching general exception but throwing if fails
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if retry_exception_check is not None and not retry_exception_check(exc):
                raise exc
            caller = inspect.stack()[1][3]
            logging.warning(
                "Retry attempt %s out of %s: Function %s called from %s failed with %s",
                attempt_number + 1,
                retry_count,
                getattr(func, "__name__", func),
                caller,
                repr(exc),
            )
            exception = exc
            # No point sleeping after the final attempt
            if attempt_number < retry_count - 1:
                time.sleep(options.start_latency * options.backoff_multiplier**attempt_number)
    assert exception is not None
    raise exception
