"""
User database model.

One row per student account; doubles as the profile record.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from bunkride.app.db.session import Base


class User(Base):
    """
    Student account and profile.

    ``college`` is derived from the email domain at signup and never changes.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    college = Column(String(100), index=True, nullable=False)
    phone = Column(String(30), nullable=False)
    year = Column(String(30), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Privacy flags
    show_name = Column(Boolean, default=True, nullable=False)
    show_year = Column(Boolean, default=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', college='{self.college}')>"
