"""
Trip database model.

A trip is a ride offer posted by a student, visible to students of the
same college until its departure passes.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Date, Time, DateTime, ForeignKey, Enum, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bunkride.app.db.session import Base
from bunkride.app.models.enums import TransportMode, TripStatus


class Trip(Base):
    """
    Trip model.

    ``available_seats`` starts at ``total_seats`` and only ever decreases,
    by one per approved request. ``price_per_person`` is NULL when the
    creator left the cost undecided.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Route and schedule
    route_from = Column(String(200), nullable=False)
    route_to = Column(String(200), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    transport_mode = Column(Enum(TransportMode), default=TransportMode.CAR, nullable=False)

    # Seats and cost
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    total_cost = Column(Integer, nullable=True)
    cost_undecided = Column(Boolean, default=False, nullable=False)
    price_per_person = Column(Integer, nullable=True)

    # Creator snapshot
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    creator_name = Column(String(100), nullable=False)
    creator_college = Column(String(100), nullable=False, index=True)

    status = Column(Enum(TripStatus), default=TripStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    requests = relationship(
        "TripRequest",
        back_populates="trip",
        lazy="selectin",
        order_by="TripRequest.id",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("total_seats >= 1", name="ck_trips_total_seats_positive"),
        CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="ck_trips_available_seats_bounds"
        ),
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, {self.route_from!r}->{self.route_to!r}, seats={self.available_seats}/{self.total_seats})>"
