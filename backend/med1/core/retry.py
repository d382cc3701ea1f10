"""
Bounded retry for database operations that may hit dropped connections.

Only errors whose message mentions "connection" are retried; everything else
propagates on the first failure.
"""

import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0


def is_connection_error(exc: BaseException) -> bool:
    """True when the error message mentions a connection problem."""
    return "connection" in str(exc).lower()


def with_retry(
    operation: Callable[[], T],
    attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
) -> T:
    """
    Run ``operation`` with up to ``attempts`` tries and linear backoff.

    The n-th retry waits ``n * base_delay`` seconds. The last error is
    re-raised unchanged once attempts are exhausted.
    """
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        retry=retry_if_exception(is_connection_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(operation)
