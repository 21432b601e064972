"""Retry utilities with exponential backoff for vendor requests."""

import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)


# tenacity's before_sleep_log expects a stdlib logger
logger = logging.getLogger(__name__)

# Transient failures worth a second attempt; HTTP status errors are not retried
RETRYABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.RemoteProtocolError,
)


def vendor_retry(max_attempts: int = 1, backoff: float = 1.0):
    """Build a retry decorator for a single vendor GET.

    Args:
        max_attempts: Total attempts including the first (1 disables retrying)
        backoff: Exponential backoff multiplier in seconds (0 retries immediately)

    Returns:
        tenacity retry decorator that re-raises the last error
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff, min=0, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
