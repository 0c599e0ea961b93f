"""
Profile schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class ProfileUpdate(BaseModel):
    """Editable profile fields. Email and college never change."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=5, max_length=30)
    year: Optional[str] = Field(default=None, max_length=30)
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    show_name: Optional[bool] = None
    show_year: Optional[bool] = None


class StatsResponse(BaseModel):
    """Dashboard counters for the signed-in student."""
    trips_created: int
    active_upcoming_trips: int
    requests_sent: int
    requests_approved: int
    pending_requests_received: int
    seats_filled: int
