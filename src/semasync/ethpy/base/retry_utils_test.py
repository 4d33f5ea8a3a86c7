"""Test retrying calls."""

from unittest.mock import patch

import pytest

from .retry_utils import RetryCallOptions, retry_call

_NO_WAIT = RetryCallOptions(start_latency=0, backoff_multiplier=2)


def test_retry_call_success(caplog: pytest.LogCaptureFixture):
    """A call that works the first time is not retried."""
    assert retry_call(5, None, lambda block: block + 1, 41, options=_NO_WAIT) == 42
    retries = [r for r in caplog.records if r.message.startswith("Retry")]
    assert len(retries) == 0


def test_retry_call_fail(caplog: pytest.LogCaptureFixture):
    """Verify that a bogus call produces the correct number of retries."""

    def fail_func():
        raise AssertionError("Failed function")

    with pytest.raises(ValueError):
        _ = retry_call(0, None, fail_func)

    for read_retry_count in [1, 4, 8]:
        with pytest.raises(AssertionError):
            _ = retry_call(read_retry_count, None, fail_func, options=_NO_WAIT)
        retries = [r for r in caplog.records if r.message.startswith("Retry")]
        assert len(retries) == read_retry_count
        caplog.clear()


def test_retry_call_recovers():
    """A flaky call returns once it stops failing."""
    attempts = []

    def flaky_func():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("node hiccup")
        return "ok"

    assert retry_call(5, None, flaky_func, options=_NO_WAIT) == "ok"
    assert len(attempts) == 3


def test_retry_call_exception_check():
    """Exceptions rejected by the check are raised immediately."""
    attempts = []

    def bad_range():
        attempts.append(1)
        raise ValueError("fromBlock > toBlock")

    with pytest.raises(ValueError):
        retry_call(5, lambda exc: not isinstance(exc, ValueError), bad_range, options=_NO_WAIT)
    assert len(attempts) == 1


def test_retry_call_backoff():
    """Waits grow by the backoff multiplier and are skipped after the last attempt."""

    def fail_func():
        raise ConnectionError("down")

    options = RetryCallOptions(start_latency=0.5, backoff_multiplier=2)
    with patch("semasync.ethpy.base.retry_utils.time.sleep") as mock_sleep:
        with pytest.raises(ConnectionError):
            retry_call(4, None, fail_func, options=options)
    assert [call.args[0] for call in mock_sleep.call_args_list] == [0.5, 1.0, 2.0]
