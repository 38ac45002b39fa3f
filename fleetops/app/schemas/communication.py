"""
Trip message and driver notification schemas.
"""

from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime

from fleetops.app.models.notification import NotificationType
from fleetops.app.models.trip_enums import MessageSender


class TripMessageResponse(BaseModel):
    id: int
    trip_id: int
    sender_type: MessageSender
    sender_name: str
    message: str
    attachment_url: Optional[str]
    is_read: bool
    timestamp: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: int
    driver_id: int
    type: NotificationType
    title: str
    message: str
    metadata_payload: Optional[Dict[str, Any]]
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True
