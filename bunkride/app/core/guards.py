"""
Access guards for trip-scoped resources.

Membership questions are answered by the predicates in
``bunkride.app.domain.trips.rules``; the guard turns a failed check into
the matching application error.
"""

from typing import List

from bunkride.app.core.exceptions import NotAuthorizedError, NotFoundError
from bunkride.app.domain.trips import rules


class TripGuard:
    """
    Class-based guard for trip membership.

    Usage:
        trip_guard = TripGuard()

        @router.get("/trips/{trip_id}/messages")
        async def list_messages(
            trip_id: int,
            principal: User = Depends(get_current_principal),
            db: AsyncSession = Depends(get_db)
        ):
            trip = await TripWorkflow.get_trip_or_404(db, trip_id)
            trip_guard.enforce_member(principal, trip)
            ...
    """

    def enforce_visible(self, principal, trip) -> None:
        """
        Trips outside the principal's college look absent rather than forbidden.

        Raises:
            NotFoundError if the principal may not see the trip
        """
        if not rules.can_view_trip(principal, trip):
            raise NotFoundError("Trip", trip.id)

    def enforce_creator(self, principal, trip, action: str = "manage this trip") -> None:
        """
        Raises:
            NotAuthorizedError unless the principal created the trip
        """
        if not rules.is_creator(principal, trip):
            raise NotAuthorizedError(
                f"Only the trip creator can {action}",
                details={"trip_id": trip.id}
            )

    def enforce_member(self, principal, trip, resource_name: str = "trip") -> None:
        """
        Raises:
            NotAuthorizedError unless the principal is the creator or an
            approved participant
        """
        self.enforce_visible(principal, trip)
        if not rules.is_member(principal, trip):
            raise NotAuthorizedError(
                f"Access denied. Only the creator and approved riders can access this {resource_name}.",
                details={"trip_id": trip.id}
            )

    def visible_requests(self, principal, trip) -> List:
        """
        The requests of ``trip`` the principal may see: all of them for the
        creator, only their own entry for anyone else.
        """
        if rules.is_creator(principal, trip):
            return list(trip.requests)
        own = rules.request_of(trip, principal.id)
        return [own] if own is not None else []


trip_guard = TripGuard()
