"""Retry with exponential backoff and jitter for unreliable async operations."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0


def compute_backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay in seconds to wait after the given (1-based) failed attempt."""
    exponential = base_delay * (2 ** (attempt - 1))
    jitter = random.uniform(0, base_delay)
    return min(exponential + jitter, max_delay)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
) -> T:
    """Await fn() up to `attempts` times, sleeping with backoff between failures.

    Every exception is treated as retriable. When all attempts fail the last
    exception is re-raised as-is. `on_retry` is called with the error and the
    attempt number after each failure that will be retried; anything it raises
    is logged and ignored.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as e:
            if attempt == attempts:
                raise
            if on_retry is not None:
                try:
                    on_retry(e, attempt)
                except Exception as observer_err:
                    logger.debug("on_retry callback failed: %s", observer_err)
            delay = compute_backoff_delay(attempt, base_delay, max_delay)
            logger.debug("Attempt %d/%d failed (%s); retrying in %.2fs",
                         attempt, attempts, e, delay)
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
