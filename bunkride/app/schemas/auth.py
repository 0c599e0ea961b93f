"""
Authentication Pydantic schemas.

Defines request and response schemas for signup, verification and login.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class SignupRequest(BaseModel):
    """
    Schema for student signup.

    Used by POST /auth/signup. The email must be an institutional address;
    the college is derived from its domain.
    """
    email: EmailStr = Field(..., description="Institutional email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: str = Field(..., min_length=1, max_length=100, description="Full name")
    phone: str = Field(..., min_length=5, max_length=30, description="Contact phone number")
    year: Optional[str] = Field(default=None, max_length=30, description="Year of study")


class SignupResponse(BaseModel):
    user_id: int
    email: str
    college: str
    email_verified: bool
    message: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., description="Token from the verification email")


class LoginRequest(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by a successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")
    college: str = Field(..., description="College partition key")


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me and the profile endpoints.
    """
    id: int
    email: str
    name: str
    college: str
    phone: str
    year: Optional[str] = None
    avatar_url: Optional[str] = None
    show_name: bool
    show_year: bool
    email_verified: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # Pydantic v2 (was orm_mode in v1)
