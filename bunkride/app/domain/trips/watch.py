"""
Live joinable-trip listings.

A watcher subscribes to the trip change feed and re-runs the joinable query
after every relevant change. Nothing is cached between snapshots; each one
is read in its own short session.
"""

import asyncio
import logging
from datetime import date as date_type, datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from bunkride.app.core import clock
from bunkride.app.core.exceptions import NotFoundError
from bunkride.app.core.reliability import retry_with_backoff
from bunkride.app.domain.trips import views
from bunkride.app.domain.trips.workflow import TripWorkflow
from bunkride.app.models.user import User
from bunkride.app.services.trip_events import TripChange, TripChangeFeed, trip_feed

logger = logging.getLogger("bunkride.trips.watch")


def affects(change: TripChange, college: Optional[str]) -> bool:
    """Changes on other colleges' trips cannot alter this principal's listing."""
    return change.college is None or college is None or change.college == college


async def next_batch(changes: asyncio.Queue) -> List[TripChange]:
    """Wait for one change, then drain whatever else already arrived."""
    batch = [await changes.get()]
    while not changes.empty():
        batch.append(changes.get_nowait())
    return batch


async def load_joinable_snapshot(
    session_factory: async_sessionmaker,
    principal_id: int,
    destination: Optional[str] = None,
    on_date: Optional[date_type] = None,
    min_seats: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[List[Dict[str, Any]], str]:
    """One fresh read of the joinable listing, serialized for the principal."""
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.id == principal_id))
        principal = result.scalar_one_or_none()
        if principal is None:
            raise NotFoundError("User", principal_id)

        now = now or clock.now()
        trips = await TripWorkflow.list_joinable_trips(
            db, principal,
            destination=destination, on_date=on_date, min_seats=min_seats, now=now
        )
        return views.serialize_trips(trips, principal, now), principal.college


async def watch_joinable_trips(
    session_factory: async_sessionmaker,
    principal_id: int,
    destination: Optional[str] = None,
    on_date: Optional[date_type] = None,
    min_seats: Optional[int] = None,
    feed: TripChangeFeed = trip_feed,
    retry_attempts: int = 5,
    sleep: Optional[Callable] = None,
) -> AsyncIterator[List[Dict[str, Any]]]:
    """
    Yield the joinable listing now and again after every relevant change.

    The subscription is taken before the first read, so a change committed
    while that read runs still triggers a refresh. Bursts of changes collapse
    into one refresh. Transient store errors are retried with backoff;
    ``RetriesExhaustedError`` ends the stream.

    Usage:
        async for trips in watch_joinable_trips(AsyncSessionLocal, user.id):
            ...
    """
    changes: asyncio.Queue = asyncio.Queue()
    unsubscribe = feed.subscribe(changes.put_nowait)

    async def snapshot():
        return await load_joinable_snapshot(
            session_factory, principal_id,
            destination=destination, on_date=on_date, min_seats=min_seats
        )

    try:
        while True:
            trips, college = await retry_with_backoff(snapshot, attempts=retry_attempts, sleep=sleep)
            yield trips
            while True:
                batch = await next_batch(changes)
                if any(affects(change, college) for change in batch):
                    break
            logger.debug("Refreshing joinable trips for user %s after %d change(s)", principal_id, len(batch))
    finally:
        unsubscribe()
