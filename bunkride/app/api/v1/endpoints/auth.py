"""
Authentication API endpoints.

Signup with an institutional email, email verification, login and logout.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from bunkride.app.db.session import get_db
from bunkride.app.models.user import User
from bunkride.app.schemas.auth import (
    SignupRequest, SignupResponse, VerifyEmailRequest, LoginRequest, TokenResponse, UserResponse
)
from bunkride.app.core.security import get_password_hash, verify_password, is_institutional_email, derive_college
from bunkride.app.core.jwt import create_access_token, create_email_verification_token, decode_email_verification_token
from bunkride.app.core.dependencies import get_current_user
from bunkride.app.core.exceptions import AuthenticationError, EmailNotVerifiedError, ValidationError
from bunkride.app.core.redis_client import get_redis
from bunkride.app.core.token_revocation import revoke_token
from bunkride.app.services.audit import log_event, AuditAction
from bunkride.app.services.notification_service import NotificationService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new student account.

    - Email must be institutional; the college is derived from its domain
    - The account starts unverified; a verification token is queued for the mailer
    """
    email = user_data.email.strip().lower()
    if not is_institutional_email(email):
        raise ValidationError(
            "Please use your college email address",
            details={"email": email}
        )

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=email,
        name=user_data.name.strip(),
        hashed_password=get_password_hash(user_data.password),
        college=derive_college(email),
        phone=user_data.phone.strip(),
        year=user_data.year,
        is_active=True,
        email_verified=False,
    )
    db.add(new_user)
    await db.flush()

    token = create_email_verification_token(new_user.id, new_user.email)
    await NotificationService.queue_email_verification(db, new_user, token)
    await db.commit()
    await db.refresh(new_user)

    await log_event(
        db=db,
        action=AuditAction.SIGNUP,
        actor_id=new_user.id,
        actor_email=new_user.email,
        metadata={"college": new_user.college}
    )

    return SignupResponse(
        user_id=new_user.id,
        email=new_user.email,
        college=new_user.college,
        email_verified=new_user.email_verified,
        message="Account created. Check your inbox to verify your email.",
    )


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Mark the account in the verification token as verified (idempotent)."""
    payload = decode_email_verification_token(body.token)
    if payload is None:
        raise AuthenticationError("Invalid or expired verification token")

    result = await db.execute(select(User).where(User.id == payload.get("user_id")))
    user = result.scalar_one_or_none()
    if not user or user.email != payload.get("sub"):
        raise AuthenticationError("Invalid or expired verification token")

    if not user.email_verified:
        user.email_verified = True
        await db.commit()
        await db.refresh(user)
        await log_event(
            db=db,
            action=AuditAction.EMAIL_VERIFIED,
            actor_id=user.id,
            actor_email=user.email
        )

    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Logs successful and failed login attempts for security monitoring.
    """
    email = credentials.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id if user else None,
            actor_email=email,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id,
            actor_email=user.email,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    if not user.email_verified:
        raise EmailNotVerifiedError()

    access_token = create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "college": user.college,
    })

    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_id=user.id,
        actor_email=user.email
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        name=user.name,
        college=user.college,
    )


@router.post("/logout")
async def logout(
    current_user: dict = Depends(get_current_user),
    redis=Depends(get_redis),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the presented token."""
    await revoke_token(redis, current_user["token"], current_user["user_id"], current_user.get("exp"))
    await log_event(
        db=db,
        action=AuditAction.LOGOUT,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub")
    )
    return {"status": "success", "message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Raises:
        404: If user not found in database
    """
    result = await db.execute(select(User).where(User.id == current_user.get("user_id")))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)
