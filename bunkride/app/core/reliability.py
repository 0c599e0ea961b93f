"""
Reliability Utilities.

Exponential backoff for the long-lived readers (joinable-trip streams,
the expiry sweeper) that must survive transient store outages.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from bunkride.app.core.exceptions import StoreUnavailableError

logger = logging.getLogger("bunkride.reliability")

T = TypeVar("T")

# Errors that mean "the store is unreachable right now", not "the request is wrong"
TRANSIENT_STORE_ERRORS: Tuple[Type[BaseException], ...] = (
    StoreUnavailableError,
    OperationalError,
    InterfaceError,
    ConnectionError,
)


class RetriesExhaustedError(StoreUnavailableError):
    def __init__(self, attempts: int):
        super().__init__(f"Data store still unavailable after {attempts} attempts")
        self.details = {"attempts": attempts}


def backoff_delays(base_delay: float = 0.5, factor: float = 2.0, max_delay: float = 30.0) -> Iterator[float]:
    """Yield an endless sequence of capped exponential delays."""
    delay = base_delay
    while True:
        yield min(delay, max_delay)
        delay *= factor


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    attempts: int = 5,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    retry_on: Tuple[Type[BaseException], ...] = TRANSIENT_STORE_ERRORS,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Await ``func()`` until it succeeds, sleeping with backoff between
    transient failures.

    Raises:
        RetriesExhaustedError: after ``attempts`` consecutive transient failures
    """
    sleep = sleep or asyncio.sleep
    delays = backoff_delays(base_delay=base_delay, max_delay=max_delay)
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except retry_on as e:
            if attempt == attempts:
                break
            delay = next(delays)
            logger.warning(
                "Transient store failure (%s), retry %d/%d in %.1fs",
                type(e).__name__, attempt, attempts - 1, delay
            )
            await sleep(delay)
    raise RetriesExhaustedError(attempts)
