"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Dispatch Service.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from fleetops.app.core.config import settings
from fleetops.app.api.v1.router import router as api_v1_router
from fleetops.app.core.dependencies import change_feed
from fleetops.app.core.observability import ObservabilityMiddleware, configure_logging
from fleetops.app.core.redis_client import ping_redis
from fleetops.app.db.session import engine, Base
from fleetops.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from fleetops.app.services.cache import bind_invalidation

# Import models to ensure they are registered with Base
from fleetops.app.models.fleet import Client, Driver, Vehicle
from fleetops.app.models.trip import Trip
from fleetops.app.models.trip_assignment import TripAssignment
from fleetops.app.models.trip_message import TripMessage
from fleetops.app.models.audit_log import AuditLog
from fleetops.app.models.notification import Notification

logger = logging.getLogger("fleetops")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Fleet dispatch service started", extra={"version": settings.api_version})
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Trip scheduling and dispatch for a chauffeur fleet",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Cached trip listings go stale on any trip write
bind_invalidation(change_feed, "trips")


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
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
        "message": "Welcome to the Fleet Dispatch Service API",
        "docs": "/docs",
        "health": "/health",
    }
