"""
Audit Log Database Model.

Tracks sign-ins and every trip/request state change.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from bunkride.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - SIGNUP / EMAIL_VERIFIED / LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - TRIP_CREATED / TRIP_DELETED / TRIPS_SWEPT
    - REQUEST_CREATED / REQUEST_WITHDRAWN / REQUEST_APPROVED / REQUEST_REJECTED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions such as the sweep)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Subject of the action
    trip_id = Column(Integer, index=True, nullable=True)
    target_user_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_id}, trip={self.trip_id})>"
