"""
Trip schemas.

Schemas for trip creation, listings, request state and contact exchange.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional, Any
from datetime import datetime, date as date_type, time as time_type

from bunkride.app.models.enums import RequestStatus, TransportMode, TripStatus


class TripCreate(BaseModel):
    """
    Schema for posting a trip.

    Either ``total_cost`` is given or ``cost_undecided`` is true.
    """
    route_from: str = Field(..., min_length=1, max_length=200, description="Departure point")
    route_to: str = Field(..., min_length=1, max_length=200, description="Destination")
    date: date_type = Field(..., description="Departure date")
    time: time_type = Field(..., description="Departure time")
    transport_mode: TransportMode = Field(default=TransportMode.CAR)
    total_seats: int = Field(..., ge=1, description="Seats offered, including none for the creator")
    total_cost: Optional[int] = Field(default=None, ge=0, description="Total cost to split")
    cost_undecided: bool = Field(default=False)

    @model_validator(mode="after")
    def cost_given_or_undecided(self):
        if not self.cost_undecided and self.total_cost is None:
            raise ValueError("total_cost is required unless cost_undecided is true")
        return self


class TripRequestResponse(BaseModel):
    requester_id: int
    requester_name: str
    requester_email: str
    status: RequestStatus
    requested_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripResponse(BaseModel):
    """
    Schema for trip response.

    ``requests`` is keyed by requester id.
    """
    id: int
    route_from: str
    route_to: str
    date: date_type
    time: time_type
    transport_mode: TransportMode
    total_seats: int
    available_seats: int
    total_cost: Optional[int]
    cost_undecided: bool
    price_per_person: Optional[int]
    creator_id: int
    creator_name: str
    creator_college: str
    status: TripStatus
    created_at: Optional[datetime] = None
    requests: Dict[str, TripRequestResponse] = {}
    my_request_status: Optional[RequestStatus] = None
    is_creator: bool = False
    can_delete: bool = False


class DeletableResponse(BaseModel):
    trip_id: int
    can_delete: bool
    hours_until_departure: float
    window_hours: int


class ContactResponse(BaseModel):
    user_id: int
    role: str
    name: str
    email: str
    phone: str
    year: Optional[str] = None
    avatar_url: Optional[str] = None


class TripContactsResponse(BaseModel):
    trip_id: int
    contacts: List[ContactResponse]


class TripHistoryEntry(BaseModel):
    id: int
    action: str
    actor_id: Optional[int]
    target_user_id: Optional[int]
    meta_data: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True
