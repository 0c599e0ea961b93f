"""
Trip change feed.

In-process publish/subscribe for committed trip mutations. Readers that
keep derived views (joinable-trip streams) subscribe here and recompute on
every change instead of caching.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger("bunkride.events")


class TripChangeKind(str, enum.Enum):
    CREATED = "created"
    REQUESTED = "requested"
    WITHDRAWN = "withdrawn"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETED = "deleted"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TripChange:
    trip_id: int
    kind: TripChangeKind
    college: Optional[str] = None


Listener = Callable[[TripChange], None]


class TripChangeFeed:
    """
    Usage:
        unsubscribe = trip_feed.subscribe(queue.put_nowait)
        try:
            ...
        finally:
            unsubscribe()
    """

    def __init__(self):
        self._listeners: Dict[int, Listener] = {}
        self._next_token = 0

    def subscribe(self, on_change: Listener) -> Callable[[], None]:
        """Register ``on_change``; the returned callable removes it (idempotent)."""
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = on_change

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def publish(self, change: TripChange) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(change)
            except Exception:
                # keep delivering to the remaining listeners
                logger.exception("Trip change listener failed for trip %s", change.trip_id)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


# Process-wide feed
trip_feed = TripChangeFeed()
