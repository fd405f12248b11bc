"""
Retry with exponential backoff.

Only navigation goes through here. Click and DOM operations use the
executor's no-throw, boolean convention instead.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sitescout.constants import DEFAULT_MAX_RETRIES, DEFAULT_BASE_DELAY_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before the retry that follows `attempt` (1-based)."""
    return base_delay * (2 ** (attempt - 1))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    operation_name: str = "operation",
) -> T:
    """
    Run an async operation, retrying with exponential backoff.

    The operation is attempted at most `max_retries` times. Between attempts
    the delay is base_delay * 2^(attempt-1) seconds.

    Args:
        operation: Zero-argument coroutine function to run
        max_retries: Total number of attempts (minimum 1)
        base_delay: Initial delay in seconds
        operation_name: Label used in log messages

    Returns:
        The operation's result

    Raises:
        Exception: The last underlying exception once attempts are exhausted
    """
    attempts = max(1, max_retries)
    last_exception: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_exception = e
            if attempt < attempts:
                delay = backoff_delay(attempt, base_delay)
                logger.warning(
                    f"{operation_name} failed (attempt {attempt}/{attempts}): {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

    logger.error(f"{operation_name} failed after {attempts} attempts: {last_exception}")
    raise last_exception


async def retryable_navigate(
    page,
    url: str,
    timeout_ms: int = 20000,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
) -> Any:
    """
    Navigate to a URL with retries.

    Args:
        page: Playwright page
        url: Target URL
        timeout_ms: Per-attempt navigation timeout
        max_retries: Total number of attempts
        base_delay: Initial backoff delay in seconds

    Returns:
        The Playwright Response of the successful navigation (may be None)

    Raises:
        Exception: The last navigation error once attempts are exhausted
    """
    async def _goto():
        return await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

    return await with_retry(
        _goto,
        max_retries=max_retries,
        base_delay=base_delay,
        operation_name=f"Navigate to {url}",
    )
