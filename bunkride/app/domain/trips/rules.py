"""
Trip Lifecycle Rules (Domain Logic).

Pure decisions with no I/O: creation defaults, request preconditions,
transition checks, expiry, deletion eligibility and visibility predicates.
Everything here takes plain objects with the Trip/TripRequest/User
attributes, so it can be exercised without a database.

Request state machine:

    (none) --request--> PENDING --approve--> APPROVED
                           |   \\--reject---> REJECTED
                           \\--withdraw--> (none)

APPROVED and REJECTED are terminal.
"""

from datetime import date as date_type, datetime, time as time_type
from typing import Iterable, Iterator, Optional, Tuple

from bunkride.app.core.exceptions import (
    DuplicateRequestError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    SelfJoinError,
    TooLateError,
    TripFullError,
    TripInactiveError,
    ValidationError,
)
from bunkride.app.models.enums import RequestStatus, TripStatus

DEFAULT_DELETION_WINDOW_HOURS = 48


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def compute_price_per_person(total_cost: Optional[int], total_seats: int, cost_undecided: bool = False) -> Optional[int]:
    """floor(total_cost / total_seats), or None when the cost is undecided."""
    if cost_undecided or total_cost is None:
        return None
    return total_cost // total_seats


def validate_new_trip(
    principal,
    route_from: str,
    route_to: str,
    trip_date: date_type,
    trip_time: time_type,
    total_seats: int,
    total_cost: Optional[int],
    cost_undecided: bool,
    now: datetime,
) -> None:
    """
    Raise ValidationError unless a trip with these inputs may be created now.
    """
    if principal is None or not getattr(principal, "email_verified", False):
        raise ValidationError("A verified account is required to create a trip")

    if not route_from or not route_from.strip() or not route_to or not route_to.strip():
        raise ValidationError("Both 'from' and 'to' are required", details={"field": "route"})

    if isinstance(total_seats, bool) or not isinstance(total_seats, int) or total_seats < 1:
        raise ValidationError("total_seats must be a positive integer", details={"total_seats": total_seats})

    if not cost_undecided:
        if total_cost is None:
            raise ValidationError("total_cost is required unless the cost is marked undecided")
        if total_cost < 0:
            raise ValidationError("total_cost cannot be negative", details={"total_cost": total_cost})

    if trip_date < now.date():
        raise ValidationError("Trip date must not be in the past", details={"date": trip_date.isoformat()})
    if departure_at_parts(trip_date, trip_time) <= now:
        raise ValidationError(
            "Trip departure must be in the future",
            details={"date": trip_date.isoformat(), "time": trip_time.isoformat()}
        )


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

def departure_at_parts(trip_date: date_type, trip_time: time_type) -> datetime:
    return datetime.combine(trip_date, trip_time)


def departure_at(trip) -> datetime:
    return departure_at_parts(trip.date, trip.time)


def is_expired(trip, now: datetime) -> bool:
    """A trip expires once its scheduled departure is in the past."""
    return departure_at(trip) < now


def hours_until_departure(trip, now: datetime) -> float:
    return (departure_at(trip) - now).total_seconds() / 3600


def can_delete(trip, now: datetime, window_hours: int = DEFAULT_DELETION_WINDOW_HOURS) -> bool:
    """Deletion is allowed only while more than ``window_hours`` remain."""
    return hours_until_departure(trip, now) > window_hours


def check_can_delete(principal, trip, now: datetime, window_hours: int = DEFAULT_DELETION_WINDOW_HOURS) -> None:
    if not is_creator(principal, trip):
        raise NotAuthorizedError("Only the trip creator can delete this trip", details={"trip_id": trip.id})
    if not can_delete(trip, now, window_hours):
        raise TooLateError(hours_until_departure(trip, now), window_hours)


# ---------------------------------------------------------------------------
# Authorization / visibility predicates
# ---------------------------------------------------------------------------

def is_creator(principal, trip) -> bool:
    return principal is not None and trip.creator_id == principal.id


def request_of(trip, principal_id: int):
    for request in trip.requests:
        if request.requester_id == principal_id:
            return request
    return None


def is_approved_participant(principal, trip) -> bool:
    request = request_of(trip, principal.id)
    return request is not None and request.status == RequestStatus.APPROVED


def is_member(principal, trip) -> bool:
    """Creator or approved participant: may chat and see contacts."""
    return is_creator(principal, trip) or is_approved_participant(principal, trip)


def can_view_trip(principal, trip) -> bool:
    """Creator, a student of the same college, or anyone already involved."""
    return (
        is_creator(principal, trip)
        or trip.creator_college == principal.college
        or request_of(trip, principal.id) is not None
    )


def is_joinable_by(trip, principal, today: date_type) -> bool:
    """
    The joinable-listing predicate, applied in this order: same college,
    active, not in the past, not the principal's own, seats remaining.
    """
    return (
        trip.creator_college == principal.college
        and trip.status == TripStatus.ACTIVE
        and trip.date >= today
        and trip.creator_id != principal.id
        and trip.available_seats > 0
    )


# ---------------------------------------------------------------------------
# Request transitions
# ---------------------------------------------------------------------------

def check_can_request(principal, trip, now: datetime) -> None:
    """
    Raise the matching error unless ``principal`` may request to join ``trip``.
    """
    if not can_view_trip(principal, trip):
        raise NotFoundError("Trip", trip.id)
    if is_creator(principal, trip):
        raise SelfJoinError()
    if trip.available_seats <= 0:
        raise TripFullError(trip.id)
    if trip.status != TripStatus.ACTIVE:
        raise TripInactiveError(trip.status.value)
    if is_expired(trip, now):
        raise TripInactiveError("expired")
    existing = request_of(trip, principal.id)
    if existing is not None:
        raise DuplicateRequestError(existing.status.value)


def check_can_withdraw(principal, trip, requester_id: int):
    """Return the pending request the principal may withdraw."""
    if requester_id != principal.id:
        raise NotAuthorizedError(
            "You can only withdraw your own request",
            details={"trip_id": trip.id, "requester_id": requester_id}
        )
    request = request_of(trip, principal.id)
    if request is None or request.status != RequestStatus.PENDING:
        raise NotFoundError("Pending request", requester_id)
    return request


def check_can_resolve(principal, trip, requester_id: int):
    """Return the pending request the creator may approve or reject."""
    if not is_creator(principal, trip):
        raise NotAuthorizedError(
            "Only the trip creator can approve or reject requests",
            details={"trip_id": trip.id}
        )
    request = request_of(trip, requester_id)
    if request is None:
        raise InvalidStateError(
            "No request from this user on this trip",
            details={"trip_id": trip.id, "requester_id": requester_id}
        )
    if request.status != RequestStatus.PENDING:
        raise InvalidStateError(
            f"Request already decided with status: {request.status.value}",
            details={"trip_id": trip.id, "requester_id": requester_id, "status": request.status.value}
        )
    return request


def seats_after_approval(available_seats: int) -> int:
    """An approval takes one seat; the count never goes below zero."""
    return max(0, available_seats - 1)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def filter_joinable(
    trips: Iterable,
    principal,
    today: date_type,
    destination: Optional[str] = None,
    on_date: Optional[date_type] = None,
    min_seats: Optional[int] = None,
) -> Iterator:
    """
    Lazily yield trips the principal could join, then apply the optional
    refinements: substring match on from/to, exact date, minimum seats.
    """
    needle = destination.strip().lower() if destination else None
    for trip in trips:
        if not is_joinable_by(trip, principal, today):
            continue
        if needle and needle not in trip.route_from.lower() and needle not in trip.route_to.lower():
            continue
        if on_date is not None and trip.date != on_date:
            continue
        if min_seats is not None and trip.available_seats < min_seats:
            continue
        yield trip


def schedule_key(trip) -> Tuple[date_type, time_type]:
    return (trip.date, trip.time)


def relevance_rank(principal, trip) -> int:
    """0 = own trip, 1 = approved on it, 2 = any other request."""
    if is_creator(principal, trip):
        return 0
    if is_approved_participant(principal, trip):
        return 1
    return 2


def is_upcoming_relevant(principal, trip, now: datetime) -> bool:
    """
    Active, not yet departed, and the principal is involved. Creators and approved
    riders always keep seeing the trip; pending or rejected requesters only
    while seats remain.
    """
    if trip.status != TripStatus.ACTIVE or is_expired(trip, now):
        return False
    if is_creator(principal, trip) or is_approved_participant(principal, trip):
        return True
    return request_of(trip, principal.id) is not None and trip.available_seats > 0


def sort_upcoming(principal, trips: Iterable) -> list:
    return sorted(trips, key=lambda trip: (relevance_rank(principal, trip), trip.date, trip.time))
