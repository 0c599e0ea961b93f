"""
Expiry Sweeper.

Periodically deletes trips whose departure has passed. Listings already
hide such trips; the sweep only keeps the tables small.
"""

import asyncio
import logging
from typing import Optional, Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from bunkride.app.core.reliability import retry_with_backoff, RetriesExhaustedError
from bunkride.app.domain.trips.workflow import TripWorkflow

logger = logging.getLogger("bunkride.sweeper")


async def sweep_once(session_factory: async_sessionmaker, attempts: int = 5) -> Set[int]:
    """Run one sweep in a fresh session, retrying transient store failures."""

    async def run() -> Set[int]:
        async with session_factory() as db:
            return await TripWorkflow.sweep_expired_trips(db)

    return await retry_with_backoff(run, attempts=attempts)


async def run_sweeper(session_factory: async_sessionmaker, interval_seconds: float) -> None:
    """Sweep every ``interval_seconds`` until cancelled."""
    logger.info("Expiry sweeper started (interval %ss)", interval_seconds)
    while True:
        try:
            removed = await sweep_once(session_factory)
            if removed:
                logger.info("Expiry sweep removed trips %s", sorted(removed))
        except RetriesExhaustedError:
            logger.error("Expiry sweep skipped: data store unavailable")
        except Exception:
            logger.exception("Expiry sweep failed")
        await asyncio.sleep(interval_seconds)


def start_sweeper(session_factory: async_sessionmaker, interval_seconds: float) -> Optional[asyncio.Task]:
    """Schedule the sweeper on the running loop; 0 disables it."""
    if interval_seconds <= 0:
        logger.info("Expiry sweeper disabled")
        return None
    return asyncio.create_task(run_sweeper(session_factory, interval_seconds), name="expiry-sweeper")


async def stop_sweeper(task: Optional[asyncio.Task]) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
