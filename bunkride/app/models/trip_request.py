"""
Trip join request model.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bunkride.app.db.session import Base
from bunkride.app.models.enums import RequestStatus


class TripRequest(Base):
    """
    A student's application to join a trip.

    The unique (trip_id, requester_id) constraint is what keeps concurrent
    duplicate submissions from producing two rows.
    """
    __tablename__ = "trip_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Display snapshot for the creator's request list
    requester_name = Column(String(100), nullable=False)
    requester_email = Column(String(255), nullable=False)

    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)

    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    decided_at = Column(DateTime(timezone=True), nullable=True)

    trip = relationship("Trip", back_populates="requests")

    __table_args__ = (
        UniqueConstraint("trip_id", "requester_id", name="uq_trip_requests_trip_requester"),
    )

    def __repr__(self):
        return f"<TripRequest(trip_id={self.trip_id}, requester_id={self.requester_id}, status='{self.status.value}')>"
