"""
Trip and request enumerations.
"""

import enum


class TransportMode(str, enum.Enum):
    """How the group travels."""
    CAR = "car"
    BUS = "bus"
    TRAIN = "train"
    METRO = "metro"
    BIKE = "bike"
    FLIGHT = "flight"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    ACTIVE = "active"  # Open for requests
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestStatus(str, enum.Enum):
    """
    Join request status.

    PENDING -> APPROVED and PENDING -> REJECTED are the only transitions;
    a PENDING request may also be withdrawn (deleted) by its requester.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
