"""Retry logic for transient request failures."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from reqpipe.ports.errors import HTTPError, NetworkError, RequestCancelledError, TransportError
from reqpipe.ports.settings import RetryConfig

__all__ = ["backoff_delay", "is_retryable_error", "jitter", "retry", "should_retry"]

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Upper bound of the random offset, as a fraction of the backoff delay
JITTER_RATIO = 0.25


def backoff_delay(config: RetryConfig, attempt: int) -> float:
    """Return the capped exponential delay for a 0-indexed attempt.

    Args:
        config: Retry policy.
        attempt: Index of the attempt that just failed.

    Returns:
        ``min(base_delay_sec * 2^attempt, max_delay_sec)``, jitter excluded.
    """
    return min(config.base_delay_sec * 2**attempt, config.max_delay_sec)


def jitter(delay: float) -> float:
    """Draw a random offset in ``[0, JITTER_RATIO * delay]``."""
    return random.uniform(0, JITTER_RATIO * delay)


def is_retryable_error(error: NetworkError, config: RetryConfig) -> bool:
    """Classify an error ignoring the remaining budget.

    Cancellation is never retryable. HTTP errors are retryable when their
    status is in the configured set, transport failures always are, and
    every other kind (decoding, encoding, invalid URL, ...) is fatal.
    """
    if isinstance(error, RequestCancelledError):
        return False
    if isinstance(error, HTTPError):
        return error.status_code in config.retryable_status_codes
    return isinstance(error, TransportError)


def should_retry(error: NetworkError, config: RetryConfig, attempt: int) -> bool:
    """Return True if ``error`` on 0-indexed ``attempt`` warrants another try."""
    return attempt < config.max_retries and is_retryable_error(error, config)


def retry(
    config: RetryConfig,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate an async attempt function with exponential backoff retry.

    Each failed attempt ``n`` waits ``backoff_delay(config, n)`` plus jitter
    before the next one. The wait is an ``asyncio.sleep`` so other requests
    keep running and cancellation aborts it early.

    Args:
        config: Retry policy.

    Returns:
        Decorator function.

    Example:
        @retry(RetryConfig(max_retries=2))
        async def attempt(request):
            return await transport.perform(request)
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_exc: NetworkError | None = None

            for attempt in range(config.max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except NetworkError as e:
                    last_exc = e
                    if not should_retry(e, config, attempt):
                        if is_retryable_error(e, config):
                            logger.warning(f"Retry exhausted after {attempt + 1} attempts: {e}")
                        raise
                    delay = backoff_delay(config, attempt)
                    delay += jitter(delay)
                    logger.debug(f"Attempt {attempt + 1} failed ({e}), retrying in {delay:.2f}s")
                    await asyncio.sleep(delay)

            raise last_exc or TransportError(RuntimeError("Retry loop exhausted"))

        return wrapper

    return decorator
