"""Bounded retry with exponential backoff for async provider calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_ATTEMPTS = 2
DEFAULT_BASE_DELAY = 1.0  # seconds, doubled after each failed attempt


async def retry_async(
    func: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "call",
) -> T:
    """
    Await func() up to `attempts` times.

    Any exception from a non-final attempt is logged and retried after
    base_delay * 2**(attempt - 1) seconds. The final attempt's exception propagates.

    Args:
        func: Zero-argument coroutine factory
        attempts: Maximum number of attempts (at least 1)
        base_delay: Delay before the second attempt
        sleep: Awaitable sleep, injectable for tests
        label: Name used in log lines

    Returns:
        Whatever func() returns on the first successful attempt
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as e:
            if attempt >= attempts:
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                f"[RETRY] {label} attempt {attempt}/{attempts} failed: "
                f"{type(e).__name__}: {e}; retrying in {delay:.1f}s"
            )
            await sleep(delay)
    raise RuntimeError("unreachable")  # pragma: no cover
