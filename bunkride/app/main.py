"""
FastAPI Application Entry Point.

This is the main application file for the BunkRide Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError

from bunkride.app.core.config import settings
from bunkride.app.api.v1.router import router as api_v1_router
from bunkride.app.db.session import engine, Base, AsyncSessionLocal
from bunkride.app.core.observability import ObservabilityMiddleware, configure_logging
from bunkride.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    store_exception_handler,
    generic_exception_handler
)
from bunkride.app.services.expiry_sweeper import start_sweeper, stop_sweeper

# Import models to ensure they are registered with Base
from bunkride.app.models.user import User
from bunkride.app.models.trip import Trip
from bunkride.app.models.trip_request import TripRequest
from bunkride.app.models.trip_message import TripMessage
from bunkride.app.models.notification import Notification
from bunkride.app.models.audit_log import AuditLog

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Starts the periodic expiry sweep, cancels it on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sweeper = start_sweeper(AsyncSessionLocal, settings.expiry_sweep_interval_seconds)
    yield
    await stop_sweeper(sweeper)
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Ride sharing for students of the same college",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(DBAPIError, store_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to BunkRide Backend API",
        "docs": "/docs",
        "health": "/health",
    }
