"""Bounded retry helper with pluggable backoff."""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


def linear_backoff(unit: float) -> Callable[[int], float]:
    """Delay after attempt n (1-based) is n * unit seconds: 1s, 2s, 3s..."""

    def _delay(attempt: int) -> float:
        return attempt * unit

    return _delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    backoff: Callable[[int], float],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """
    Await operation() until it succeeds or max_attempts is exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts (not retries)
        backoff: Maps the failed attempt index to the delay before the next one
        sleep: Awaitable sleep, injectable for tests
        on_retry: Called with (attempt, exception) before each delay

    Returns:
        The first successful value

    Raises:
        The exception of the final attempt
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_attempts:
                logger.debug(f"[Retry] Attempt {attempt}/{max_attempts} failed, giving up: {e}")
                raise

            delay = backoff(attempt)
            logger.debug(f"[Retry] Attempt {attempt}/{max_attempts} failed: {e}, retrying in {delay}s")
            if on_retry:
                on_retry(attempt, e)
            await sleep(delay)

        attempt += 1
