"""
Trip database model.

A trip is a single scheduled transport job booked for a client.
"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, Boolean, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.trip_enums import TripStatus, ServiceKind


class Trip(Base):
    """
    Trip model.

    Created in SCHEDULED status. Driver and vehicle may be filled in later,
    but both must be set before the trip can move to IN_PROGRESS.
    Flight details and the passenger manifest live in their own columns;
    `notes` only holds the free-form remainder.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Parties
    client_id = Column(Integer, ForeignKey('clients.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)

    # Schedule (times kept as text, e.g. "09:30")
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(8), nullable=False)
    end_time = Column(String(8), nullable=True)

    service_kind = Column(Enum(ServiceKind), default=ServiceKind.ONE_WAY_TRANSFER, nullable=False)
    status = Column(Enum(TripStatus), default=TripStatus.SCHEDULED, nullable=False, index=True)

    pickup_location = Column(String(500), nullable=True)
    dropoff_location = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Structured ride metadata
    flight_number = Column(String(50), nullable=True)
    airline = Column(String(100), nullable=True)
    terminal = Column(String(50), nullable=True)
    passengers = Column(JSON, nullable=True)

    # Populated by billing
    amount = Column(Numeric(12, 2), default=0, nullable=False)

    # Recurrence
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_group = Column(String(36), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, date={self.date}, start='{self.start_time}', status='{self.status.value}')>"
