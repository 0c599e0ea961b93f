"""
Trip Request API Endpoints.

Students request seats; creators approve or reject. Seats are only taken
on approval.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from bunkride.app.core.dependencies import get_current_principal
from bunkride.app.db.session import get_db
from bunkride.app.domain.trips import views
from bunkride.app.domain.trips.workflow import TripWorkflow
from bunkride.app.models.enums import RequestDecision
from bunkride.app.models.user import User
from bunkride.app.schemas.trip import TripRequestResponse, TripResponse

router = APIRouter(prefix="/trips/{trip_id}/requests", tags=["Trip Requests"])


@router.post("", response_model=TripRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_to_join(
    trip_id: int = Path(..., description="Trip ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """
    Ask to join a trip.

    Fails if the caller created the trip, the trip is full or no longer
    active, or a request from the caller already exists (any status).
    """
    request = await TripWorkflow.request_to_join(db, principal, trip_id)
    return TripRequestResponse.model_validate(request)


@router.delete("/{requester_id}", response_model=TripResponse)
async def withdraw_request(
    trip_id: int = Path(..., description="Trip ID"),
    requester_id: int = Path(..., description="Requester user ID (must be the caller)"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw the caller's pending request."""
    trip = await TripWorkflow.withdraw_request(db, principal, trip_id, requester_id)
    return views.serialize_trip(trip, principal)


@router.post("/{requester_id}/approve", response_model=TripResponse)
async def approve_request(
    trip_id: int = Path(..., description="Trip ID"),
    requester_id: int = Path(..., description="Requester user ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Approve a pending request (creator only). Takes one seat."""
    trip = await TripWorkflow.resolve_request(db, principal, trip_id, requester_id, RequestDecision.APPROVE)
    return views.serialize_trip(trip, principal)


@router.post("/{requester_id}/reject", response_model=TripResponse)
async def reject_request(
    trip_id: int = Path(..., description="Trip ID"),
    requester_id: int = Path(..., description="Requester user ID"),
    principal: User = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Reject a pending request (creator only). Seats are unchanged."""
    trip = await TripWorkflow.resolve_request(db, principal, trip_id, requester_id, RequestDecision.REJECT)
    return views.serialize_trip(trip, principal)
