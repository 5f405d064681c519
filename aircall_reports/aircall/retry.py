"""
Generic retry wrapper for upstream calls
"""

import time
import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log
)

from .exceptions import UpstreamRateLimited

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_rate_limited(error: BaseException) -> bool:
    """Only rate-limit responses are worth retrying"""
    return isinstance(error, UpstreamRateLimited)


def call_with_retry(
    operation: Callable[[], T],
    should_retry: Callable[[BaseException], bool] = is_rate_limited,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep
) -> T:
    """
    Run an operation, retrying classified failures with exponential backoff

    Waits base_delay, 2 * base_delay, 4 * base_delay, ... between attempts.
    Errors the classifier rejects propagate on the first attempt; when
    attempts run out the last error is re-raised unchanged.

    Args:
        operation: Zero-argument callable to run
        should_retry: Classifier returning True for retryable errors
        max_attempts: Total attempts including the first
        base_delay: Delay before the first retry, in seconds
        sleep: Sleep function

    Returns:
        Whatever the operation returns
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception(should_retry),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True
    )
    return retrying(operation)
