"""
Trip API Endpoints.

Posting, listing, viewing and deleting trips, plus the live joinable-trip
stream and the contact exchange.
"""

import asyncio
import json
from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bunkride.app.core import clock
from bunkride.app.core.config import settings
from bunkride.app.core.dependencies import get_current_principal
from bunkride.app.core.guards import trip_guard
from bunkride.app.core.reliability import RetriesExhaustedError
from bunkride.app.db.session import get_db, get_session_factory
from bunkride.app.domain.trips import rules, views
from bunkride.app.domain.trips.watch import watch_joinable_trips
from bunkride.app.domain.trips.workflow import TripWorkflow
from bunkride.app.models.user import User
from bunkride.app.schemas.trip import (
    TripCreate, TripResponse, DeletableResponse, TripContactsResponse, TripHistoryEntry
)
from bunkride.app.services.audit import get_trip_history

router = APIRouter(prefix="/trips", tags=["Trips"])

DISCONNECT_POLL_SECONDS = 1.0


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a new trip.

    Seats start fully available; ``price_per_person`` is the floor of
    ``total_cost / total_seats`` and stays null when the cost is undecided.
    """
    trip = await TripWorkflow.create_trip(
        db,
        principal,
        route_from=trip_data.route_from,
        route_to=trip_data.route_to,
        trip_date=trip_data.date,
        trip_time=trip_data.time,
        transport_mode=trip_data.transport_mode,
        total_seats=trip_data.total_seats,
        total_cost=trip_data.total_cost,
        cost_undecided=trip_data.cost_undecided,
    )
    return views.serialize_trip(trip, principal)


@router.get("/joinable", response_model=List[TripResponse])
async def list_joinable_trips(
    destination: Optional[str] = Query(None, description="Substring of origin or destination"),
    date: Optional[date_type] = Query(None, description="Exact departure date"),
    min_seats: Optional[int] = Query(None, ge=1, description="Minimum available seats"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Trips from the caller's college that they can still request to join."""
    now = clock.now()
    trips = await TripWorkflow.list_joinable_trips(
        db, principal, destination=destination, on_date=date, min_seats=min_seats, now=now
    )
    return views.serialize_trips(trips, principal, now)


@router.get("/joinable/stream")
async def stream_joinable_trips(
    request: Request,
    destination: Optional[str] = Query(None),
    date: Optional[date_type] = Query(None),
    min_seats: Optional[int] = Query(None, ge=1),
    principal: User = Depends(get_current_principal),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """
    Server-sent events: one ``trips`` event with the full joinable list on
    connect and after every change that could affect it.
    """
    watcher = watch_joinable_trips(
        session_factory, principal.id,
        destination=destination, on_date=date, min_seats=min_seats
    )

    return StreamingResponse(
        joinable_events(watcher, request.is_disconnected),
        media_type="text/event-stream"
    )


async def joinable_events(watcher, is_disconnected, poll_interval: float = DISCONNECT_POLL_SECONDS):
    """
    Render watcher snapshots as SSE frames.

    The client connection is polled while waiting for the next change, so a
    client that goes away releases its feed subscription without waiting
    for another event.
    """
    pending = None
    try:
        while True:
            pending = asyncio.ensure_future(watcher.__anext__())
            while not pending.done():
                await asyncio.wait({pending}, timeout=poll_interval)
                if not pending.done() and await is_disconnected():
                    return
            try:
                trips = pending.result()
            except StopAsyncIteration:
                return
            yield f"event: trips\ndata: {json.dumps(jsonable_encoder(trips))}\n\n"
    except RetriesExhaustedError as e:
        error = {"error_code": e.error_code, "message": e.message}
        yield f"event: error\ndata: {json.dumps(error)}\n\n"
    finally:
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)
        await watcher.aclose()


@router.get("/mine", response_model=List[TripResponse])
async def list_my_trips(
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    trips = await TripWorkflow.list_my_created_trips(db, principal)
    return views.serialize_trips(trips, principal)


@router.get("/upcoming", response_model=List[TripResponse])
async def list_upcoming_trips(
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Own trips first, then trips the caller is approved on, then other requests."""
    now = clock.now()
    trips = await TripWorkflow.list_upcoming_relevant_trips(db, principal, now=now)
    return views.serialize_trips(trips, principal, now)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripWorkflow.get_trip(db, principal, trip_id)
    return views.serialize_trip(trip, principal)


@router.delete("/{trip_id}", status_code=status.HTTP_200_OK)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Creator only, and only while more than the deletion window remains."""
    await TripWorkflow.delete_trip(db, principal, trip_id)
    return {"status": "success", "trip_id": trip_id}


@router.get("/{trip_id}/deletable", response_model=DeletableResponse)
async def get_deletable(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripWorkflow.get_trip(db, principal, trip_id)
    now = clock.now()
    return DeletableResponse(
        trip_id=trip.id,
        can_delete=rules.can_delete(trip, now, settings.deletion_window_hours),
        hours_until_departure=round(rules.hours_until_departure(trip, now), 2),
        window_hours=settings.deletion_window_hours,
    )


@router.get("/{trip_id}/contacts", response_model=TripContactsResponse)
async def get_contacts(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Contact details exchanged between the creator and approved riders."""
    trip = await TripWorkflow.get_trip_or_404(db, trip_id)
    return await views.build_contacts(db, principal, trip)


@router.get("/{trip_id}/history", response_model=List[TripHistoryEntry])
async def get_history(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail of a trip (creator only)."""
    trip = await TripWorkflow.get_trip(db, principal, trip_id)
    trip_guard.enforce_creator(principal, trip, action="view the trip history")
    return await get_trip_history(db, trip_id)
