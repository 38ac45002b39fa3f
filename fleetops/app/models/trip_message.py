"""
Trip message database model.

Timestamped communication tied to a trip. Written by the messaging
collaborator; the dispatch core only reads it.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.trip_enums import MessageSender


class TripMessage(Base):
    __tablename__ = "trip_messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, nullable=False, index=True)

    sender_type = Column(Enum(MessageSender), nullable=False)
    sender_name = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    attachment_url = Column(String(1000), nullable=True)

    is_read = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<TripMessage(id={self.id}, trip_id={self.trip_id}, sender='{self.sender_name}')>"
