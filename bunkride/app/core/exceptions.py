"""
Custom exceptions and error handlers for consistent error responses.

Every trip workflow failure is an AppException subclass with a stable
error code, so the presentation layer can translate it without parsing
messages.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError
from typing import Any, Dict

logger = logging.getLogger("bunkride.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when input is malformed or out of range."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class NotAuthorizedError(AppException):
    """Raised when the principal lacks rights for the action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class NotFoundError(AppException):
    """Raised when a referenced trip, request or message is absent."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class DuplicateRequestError(AppException):
    """Raised when the principal already has a request on the trip."""

    def __init__(self, existing_status: str):
        super().__init__(
            message=f"You have already sent a request for this trip (status: {existing_status})",
            error_code="ERR_REQUEST_DUPLICATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"existing_status": existing_status}
        )


class SelfJoinError(AppException):
    """Raised when a creator tries to join their own trip."""

    def __init__(self):
        super().__init__(
            message="You cannot request to join your own trip",
            error_code="ERR_REQUEST_SELF",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class TripFullError(AppException):
    """Raised when no seats remain on the trip."""

    def __init__(self, trip_id: Any = None):
        super().__init__(
            message="This trip is fully booked",
            error_code="ERR_TRIP_FULL",
            status_code=status.HTTP_409_CONFLICT,
            details={"trip_id": trip_id}
        )


class TripInactiveError(AppException):
    """Raised when the trip no longer accepts requests."""

    def __init__(self, trip_status: str):
        super().__init__(
            message=f"This trip is not accepting requests (status: {trip_status})",
            error_code="ERR_TRIP_INACTIVE",
            status_code=status.HTTP_409_CONFLICT,
            details={"status": trip_status}
        )


class InvalidStateError(AppException):
    """Raised for an illegal request state transition."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_STATE",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class TooLateError(AppException):
    """Raised when the deletion window has passed."""

    def __init__(self, hours_remaining: float, window_hours: int):
        super().__init__(
            message=f"Trips can only be deleted more than {window_hours} hours before departure",
            error_code="ERR_TOO_LATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"hours_remaining": round(hours_remaining, 2), "window_hours": window_hours}
        )


class StoreUnavailableError(AppException):
    """Raised when the backing store cannot be reached."""

    def __init__(self, message: str = "Data store is temporarily unavailable"):
        super().__init__(
            message=message,
            error_code="ERR_STORE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class EmailNotVerifiedError(AppException):
    """Raised when an unverified account tries to sign in."""

    def __init__(self):
        super().__init__(
            message="Your email is not verified. Please check your inbox.",
            error_code="ERR_AUTH_UNVERIFIED",
            status_code=status.HTTP_403_FORBIDDEN
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic may put the raw exception object in ctx
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


async def store_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Handler for driver-level database failures."""
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.__class__.__name__)
    return await app_exception_handler(request, StoreUnavailableError())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
