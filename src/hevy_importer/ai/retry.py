"""Retry utilities for extraction submissions with exponential backoff."""
import logging
import time
from typing import Any, Callable, TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration: 3 retries after the first attempt, 2s/4s/8s apart
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_MIN_WAIT_SECONDS = 2
DEFAULT_MAX_WAIT_SECONDS = 8

RETRYABLE_STATUS_CODES = ("502", "503", "529")


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if a failed extraction submission should be retried.

    Retryable errors are the transient upstream signatures:
    - Overloaded model/pipeline ("overloaded", 529)
    - Rate limiting ("rate limit", "rate_limit_error")
    - Bad gateway / service unavailable (502, 503)

    Everything else (auth failures, bad requests, parse errors) is not retried.
    """
    error_str = str(exception).lower()

    if "overloaded" in error_str:
        return True

    if "rate limit" in error_str or "rate_limit" in error_str:
        return True

    if any(code in error_str for code in RETRYABLE_STATUS_CODES):
        return True

    return False


def create_retry_decorator(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    sleep: Callable[[float], Any] = time.sleep,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Create a retry decorator with exponential backoff.

    Args:
        max_attempts: Total number of attempts, including the first one
        min_wait_seconds: Wait before the first retry; doubles on each retry
        max_wait_seconds: Upper bound for a single wait
        sleep: Function used to wait between attempts

    Returns:
        A retry decorator that re-raises the last error once attempts run out
    """
    return retry(
        retry=retry_if_exception(is_retryable_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=min_wait_seconds,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )


def retry_sync_call(
    func: Callable[..., T],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    sleep: Callable[[float], Any] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Execute a function with retry logic.

    Args:
        func: Function to execute
        *args: Positional arguments for the function
        max_attempts: Total number of attempts, including the first one
        min_wait_seconds: Wait before the first retry
        max_wait_seconds: Upper bound for a single wait
        sleep: Function used to wait between attempts
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Raises:
        Exception: The first non-retryable error, or the last error once
        attempts run out
    """
    decorator = create_retry_decorator(
        max_attempts=max_attempts,
        min_wait_seconds=min_wait_seconds,
        max_wait_seconds=max_wait_seconds,
        sleep=sleep,
    )
    return decorator(func)(*args, **kwargs)
