"""
Notification Database Model.

Rows double as the trigger records the external mailer consumes.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from bunkride.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    INFO = "INFO"
    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    TRIP_REQUEST_CREATED = "TRIP_REQUEST_CREATED"
    TRIP_REQUEST_APPROVED = "TRIP_REQUEST_APPROVED"
    TRIP_REQUEST_REJECTED = "TRIP_REQUEST_REJECTED"


class Notification(Base):
    """
    In-App Notification.
    Stores messages for users.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Trip back-reference, removed together with the trip
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=True, index=True)

    # Content
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    metadata_payload = Column(JSON, nullable=True)

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user={self.user_id}, type='{self.type.value}')>"
