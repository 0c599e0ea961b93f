"""
Trip chat message model.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from bunkride.app.db.session import Base


class TripMessage(Base):
    """A message in a trip's group chat, open to the creator and approved riders."""
    __tablename__ = "trip_messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    sender_name = Column(String(100), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<TripMessage(id={self.id}, trip_id={self.trip_id}, sender_id={self.sender_id})>"
