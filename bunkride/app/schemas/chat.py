"""
Trip chat schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class MessageCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class MessageResponse(BaseModel):
    id: int
    trip_id: int
    sender_id: int
    sender_name: str
    text: str
    created_at: datetime

    class Config:
        from_attributes = True
