"""
Trip messages and driver notification API Endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.dependencies import get_coordinator
from fleetops.app.core.exceptions import ResourceNotFoundError
from fleetops.app.db.session import get_db
from fleetops.app.domain.dispatch.coordinator import DispatchCoordinator
from fleetops.app.schemas.communication import NotificationResponse, TripMessageResponse
from fleetops.app.services.notification_service import NotificationService

router = APIRouter(prefix="/trips", tags=["Trip Messages"])
driver_router = APIRouter(prefix="/drivers", tags=["Driver Notifications"])


@router.get("/{trip_id}/messages", response_model=List[TripMessageResponse])
async def list_trip_messages(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """Message thread for a trip, oldest first. Messages are written by the messaging service."""
    return await coordinator.list_messages(trip_id)


@driver_router.get("/{driver_id}/notifications", response_model=List[NotificationResponse])
async def list_driver_notifications(
    driver_id: int = Path(..., description="Driver ID"),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """A driver's notifications, newest first."""
    return await NotificationService.list_for_driver(db, driver_id, unread_only=unread_only, limit=limit)


@driver_router.patch("/{driver_id}/notifications/{notification_id}/read")
async def mark_driver_notification_read(
    driver_id: int = Path(..., description="Driver ID"),
    notification_id: int = Path(..., description="Notification ID"),
    db: AsyncSession = Depends(get_db)
):
    success = await NotificationService.mark_read(db, notification_id, driver_id)
    if not success:
        raise ResourceNotFoundError("Notification", notification_id)

    await db.commit()
    return {"status": "success"}
