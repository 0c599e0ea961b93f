"""
Derived trip views: serialized trips, contact exchange and dashboard stats.

These read but never mutate. Profiles needed for one view are fetched with
a single ``IN`` query keyed by user id, deduplicated.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bunkride.app.core import clock
from bunkride.app.core.config import settings
from bunkride.app.core.guards import trip_guard
from bunkride.app.domain.trips import rules
from bunkride.app.models.enums import RequestStatus, TripStatus
from bunkride.app.models.trip import Trip
from bunkride.app.models.trip_request import TripRequest
from bunkride.app.models.user import User


def serialize_request(request) -> Dict[str, Any]:
    return {
        "requester_id": request.requester_id,
        "requester_name": request.requester_name,
        "requester_email": request.requester_email,
        "status": request.status,
        "requested_at": request.requested_at,
        "decided_at": request.decided_at,
    }


def serialize_trip(trip: Trip, viewer, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Trip as the viewer may see it. ``requests`` is keyed by requester id and
    holds every request for the creator, only the viewer's own otherwise.
    """
    now = now or clock.now()
    requests = trip_guard.visible_requests(viewer, trip)
    own = rules.request_of(trip, viewer.id)
    return {
        "id": trip.id,
        "route_from": trip.route_from,
        "route_to": trip.route_to,
        "date": trip.date,
        "time": trip.time,
        "transport_mode": trip.transport_mode,
        "total_seats": trip.total_seats,
        "available_seats": trip.available_seats,
        "total_cost": trip.total_cost,
        "cost_undecided": trip.cost_undecided,
        "price_per_person": trip.price_per_person,
        "creator_id": trip.creator_id,
        "creator_name": trip.creator_name,
        "creator_college": trip.creator_college,
        "status": trip.status,
        "created_at": trip.created_at,
        "requests": {str(r.requester_id): serialize_request(r) for r in requests},
        "my_request_status": own.status if own is not None else None,
        "is_creator": rules.is_creator(viewer, trip),
        "can_delete": (
            rules.is_creator(viewer, trip)
            and rules.can_delete(trip, now, settings.deletion_window_hours)
        ),
    }


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

async def load_profiles(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    ids = sorted(set(user_ids))
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {user.id: user for user in result.scalars()}


def display_name(user: User) -> str:
    """Full name, or just the first name when the user hides it."""
    if user.show_name:
        return user.name
    return user.name.split()[0] if user.name.strip() else user.name


def contact_card(user: User, role: str) -> Dict[str, Any]:
    return {
        "user_id": user.id,
        "role": role,
        "name": display_name(user),
        "email": user.email,
        "phone": user.phone,
        "year": user.year if user.show_year else None,
        "avatar_url": user.avatar_url,
    }


async def build_contacts(db: AsyncSession, principal, trip: Trip) -> Dict[str, Any]:
    """
    Contact details shared once a request is approved.

    The creator sees every approved rider; an approved rider sees the
    creator. Everyone else gets NotAuthorizedError.
    """
    trip_guard.enforce_member(principal, trip, resource_name="contact list")

    if rules.is_creator(principal, trip):
        approved = [r.requester_id for r in trip.requests if r.status == RequestStatus.APPROVED]
        profiles = await load_profiles(db, approved)
        contacts = [contact_card(profiles[uid], "rider") for uid in approved if uid in profiles]
    else:
        profiles = await load_profiles(db, [trip.creator_id])
        creator = profiles.get(trip.creator_id)
        contacts = [contact_card(creator, "creator")] if creator else []

    return {"trip_id": trip.id, "contacts": contacts}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar() or 0


async def build_dashboard_stats(db: AsyncSession, principal, now: Optional[datetime] = None) -> Dict[str, int]:
    today = (now or clock.now()).date()

    trips_created = await _count(
        db, select(func.count(Trip.id)).where(Trip.creator_id == principal.id)
    )
    active_upcoming = await _count(
        db,
        select(func.count(Trip.id)).where(
            Trip.creator_id == principal.id,
            Trip.status == TripStatus.ACTIVE,
            Trip.date >= today,
        )
    )
    requests_sent = await _count(
        db, select(func.count(TripRequest.id)).where(TripRequest.requester_id == principal.id)
    )
    requests_approved = await _count(
        db,
        select(func.count(TripRequest.id)).where(
            TripRequest.requester_id == principal.id,
            TripRequest.status == RequestStatus.APPROVED,
        )
    )
    pending_received = await _count(
        db,
        select(func.count(TripRequest.id)).join(Trip, Trip.id == TripRequest.trip_id).where(
            Trip.creator_id == principal.id,
            TripRequest.status == RequestStatus.PENDING,
        )
    )
    seats_filled = await _count(
        db,
        select(func.coalesce(func.sum(Trip.total_seats - Trip.available_seats), 0)).where(
            Trip.creator_id == principal.id
        )
    )

    return {
        "trips_created": trips_created,
        "active_upcoming_trips": active_upcoming,
        "requests_sent": requests_sent,
        "requests_approved": requests_approved,
        "pending_requests_received": pending_received,
        "seats_filled": seats_filled,
    }


def serialize_trips(trips: List[Trip], viewer, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or clock.now()
    return [serialize_trip(trip, viewer, now) for trip in trips]
