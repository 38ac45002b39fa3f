"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetops.app.api.v1.endpoints import trips, trip_assignment, communication

router = APIRouter()

# Booking, editing, lifecycle and legacy notes
router.include_router(trips.router)

# Driver assignment
router.include_router(trip_assignment.router)

# Messages and driver notifications
router.include_router(communication.router)
router.include_router(communication.driver_router)
