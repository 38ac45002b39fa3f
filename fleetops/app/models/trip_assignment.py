"""
Trip assignment database model.

Append-only history of drivers proposed for a trip. Rows are never
updated; a driver's response is recorded as a new row.
"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.trip_enums import AssignmentStatus


class TripAssignment(Base):
    """
    Trip assignment model.

    Only the trip's current driver_id reflects the active assignment;
    every earlier row stays as audit trail.
    """
    __tablename__ = "trip_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # No FK on trip_id: deleting a trip leaves its history to the store's cleanup
    trip_id = Column(Integer, nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)

    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<TripAssignment(id={self.id}, trip_id={self.trip_id}, driver_id={self.driver_id}, status='{self.status.value}')>"
