"""
Unit tests for the connection retry helper.
"""

import inspect
import time

import pytest

from med1.api.pages import replace_blocks
from med1.api.referrals import create_referral_lead
from med1.core.retry import is_connection_error, with_retry


class Flaky:
    """Callable failing ``failures`` times with ``error`` before returning 'ok'."""

    def __init__(self, failures: int, error: Exception):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


class TestWithRetry:
    def test_retries_connection_errors_until_success(self):
        operation = Flaky(2, RuntimeError("Connection reset by peer"))
        assert with_retry(operation, base_delay=0) == "ok"
        assert operation.calls == 3

    def test_backoff_grows_linearly(self, monkeypatch):
        waits = []
        monkeypatch.setattr(time, "sleep", waits.append)

        assert with_retry(Flaky(2, RuntimeError("connection reset"))) == "ok"
        assert waits == [1.0, 2.0]

    def test_gives_up_after_three_attempts(self):
        operation = Flaky(5, RuntimeError("connection refused"))
        with pytest.raises(RuntimeError, match="connection refused"):
            with_retry(operation, base_delay=0)
        assert operation.calls == 3

    def test_other_errors_are_not_retried(self):
        operation = Flaky(1, ValueError("bad input"))
        with pytest.raises(ValueError):
            with_retry(operation, base_delay=0)
        assert operation.calls == 1

    def test_connection_match_is_case_insensitive(self):
        assert is_connection_error(Exception("CONNECTION lost"))
        assert not is_connection_error(Exception("timeout"))


class TestRetryingHandlers:
    """Handlers that may sleep between retries run in the threadpool, off the event loop."""

    @pytest.mark.parametrize("handler", [replace_blocks, create_referral_lead])
    def test_handler_is_synchronous(self, handler):
        assert not inspect.iscoroutinefunction(handler)
