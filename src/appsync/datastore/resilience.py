#!/usr/bin/env python3
"""Resilience Patterns for datastore access.

This module provides retry with exponential backoff for transient
datastore failures (pool exhaustion, deadlocks, dropped connections).
The sync use cases never retry on their own; the reconciliation driver
re-runs a whole application sync through ``retry_async``, which is safe
because every sync step is idempotent.

Example:
    result = await retry_async(
        sync_application,
        app,
        max_attempts=3,
        initial_delay=1.0,
    )
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .exceptions import ConnectionPoolError, TransactionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Default exceptions that are considered retryable
DEFAULT_RETRYABLE_EXCEPTIONS = (
    ConnectionPoolError,
    TransactionError,
    asyncio.TimeoutError,
    ConnectionResetError,
)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    retryable_exceptions: tuple = DEFAULT_RETRYABLE_EXCEPTIONS,
    **kwargs,
) -> T:
    """Retry an async function call with exponential backoff.

    Args:
        func: Async function to call
        *args: Arguments to pass to func
        max_attempts: Maximum attempts (including first try)
        backoff_factor: Delay multiplier
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        retryable_exceptions: Exceptions to retry on
        **kwargs: Keyword arguments to pass to func

    Returns:
        Result from func

    Raises:
        The last exception once attempts are exhausted, or any
        non-retryable exception immediately
    """
    last_exception: Optional[Exception] = None
    delay = initial_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)

        except retryable_exceptions as e:
            last_exception = e

            if attempt < max_attempts:
                actual_delay = min(delay, max_delay)
                logger.warning(
                    f"Retry {attempt}/{max_attempts}: {e}. Waiting {actual_delay:.1f}s"
                )
                await asyncio.sleep(actual_delay)
                delay = min(delay * backoff_factor, max_delay)
            else:
                logger.error(
                    f"All {max_attempts} attempts failed. Last error: {e}"
                )
                raise

    if last_exception:
        raise last_exception
    raise RuntimeError("Retry logic error")


__all__ = [
    "DEFAULT_RETRYABLE_EXCEPTIONS",
    "retry_async",
]
