"""
Driver notification service.

Creates in-app notifications for drivers and manages their read state.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc
from datetime import datetime
from typing import Optional, Dict, Any, List

from fleetops.app.models.notification import Notification, NotificationType


class NotificationService:

    @staticmethod
    def build_assignment_notice(trip, note: Optional[str] = None) -> Dict[str, Any]:
        """Notification fields telling a driver about a new trip."""
        message = f"You have been assigned to trip #{trip.id} on {trip.date} at {trip.start_time}."
        if trip.pickup_location:
            message += f" Pickup: {trip.pickup_location}."
        if note:
            message += f" Note: {note}"
        return {
            "type": NotificationType.TRIP_ASSIGNED,
            "title": "New trip assignment",
            "message": message,
            "metadata_payload": {"trip_id": trip.id},
        }

    @staticmethod
    async def list_for_driver(
        db: AsyncSession,
        driver_id: int,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).where(Notification.driver_id == driver_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, driver_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.driver_id == driver_id
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount > 0
