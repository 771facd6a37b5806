"""Retry with exponential backoff for catalog calls.

Only TransportError is retried. Any other exception (a 4xx turned into a
ResolutionError, a malformed payload) propagates on the first attempt.
Exhausted retries escalate to ResolutionError.

Backoff schedule (with base_delay=0.3):
    Attempt 1: immediate
    Attempt 2: 0.3s delay (+ jitter)
    Attempt 3: 0.6s delay (+ jitter)
    (capped at max_delay)
"""

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

import structlog

from ifc_normalizer.errors import ResolutionError, TransportError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 0.3,
    max_delay: float = 10.0,
    jitter: bool = True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "catalog call",
) -> T:
    """Run an async operation, retrying on TransportError.

    Args:
        operation: Zero-argument coroutine factory
        max_retries: Retries after the first attempt
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between attempts
        jitter: Add 0-25% random jitter to each delay
        sleep: Sleep coroutine (replaced in tests)
        description: Used in log events and the escalated error

    Returns:
        The operation's result

    Raises:
        ResolutionError: When all attempts failed with TransportError
    """
    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except TransportError as e:
            if attempt >= max_retries:
                logger.warning("catalog.retries_exhausted", call=description,
                               attempts=attempt + 1, error=str(e))
                raise ResolutionError(
                    f"{description} failed after {attempt + 1} attempts: {e}",
                    status_code=e.status_code,
                ) from e

            delay = min(base_delay * (2 ** attempt), max_delay)
            if jitter:
                delay += random.uniform(0, delay * 0.25)

            logger.info("catalog.retrying", call=description, attempt=attempt + 1,
                        delay=round(delay, 2), error=str(e))
            await sleep(delay)

    raise AssertionError("unreachable")
