"""
Trip schemas.

Input models only check types; which fields are required (and when) is
decided by the dispatch coordinator so that library callers get the same
ValidationError as HTTP callers.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
import datetime as dt

from fleetops.app.models.trip_enums import ServiceKind, TripStatus, RecurrenceFrequency


class TripCreate(BaseModel):
    """Schema for booking a trip (or a recurring series)."""
    client_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = Field(None, description="HH:MM or HH:MM:SS")
    end_time: Optional[str] = Field(None, description="Return time; round trip, escort and full day only")
    service_kind: ServiceKind = ServiceKind.ONE_WAY_TRANSFER
    pickup_location: Optional[str] = Field(None, max_length=500)
    dropoff_location: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None

    # Airport kinds only
    flight_number: Optional[str] = Field(None, max_length=50)
    airline: Optional[str] = Field(None, max_length=100)
    terminal: Optional[str] = Field(None, max_length=50)

    # Organization clients only
    passengers: Optional[List[str]] = None

    # Recurrence
    is_recurring: bool = False
    frequency: Optional[RecurrenceFrequency] = None
    occurrences: Optional[int] = Field(None, ge=1)


class TripUpdate(BaseModel):
    """Schema for editing a trip. Only fields that are sent are changed."""
    client_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    service_kind: Optional[ServiceKind] = None
    status: Optional[TripStatus] = None
    pickup_location: Optional[str] = Field(None, max_length=500)
    dropoff_location: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    flight_number: Optional[str] = Field(None, max_length=50)
    airline: Optional[str] = Field(None, max_length=100)
    terminal: Optional[str] = Field(None, max_length=50)
    passengers: Optional[List[str]] = None


class TripStatusUpdate(BaseModel):
    """Schema for an explicit status transition."""
    status: TripStatus


class LegacyTripImport(BaseModel):
    """A trip record whose notes use the packed legacy format."""
    client_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    service_kind: ServiceKind = ServiceKind.OTHER
    status: Optional[TripStatus] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    notes: Optional[str] = None
    amount: float = Field(default=0, ge=0)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    client_id: int
    driver_id: Optional[int]
    vehicle_id: Optional[int]
    date: dt.date
    start_time: str
    end_time: Optional[str]
    service_kind: ServiceKind
    status: TripStatus
    pickup_location: Optional[str]
    dropoff_location: Optional[str]
    notes: Optional[str]
    flight_number: Optional[str]
    airline: Optional[str]
    terminal: Optional[str]
    passengers: Optional[List[str]]
    amount: float
    is_recurring: bool
    recurrence_group: Optional[str]
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int


class TripCreateResponse(BaseModel):
    """Response after booking; one trip, or the whole recurring series."""
    trips: List[TripResponse]
    count: int
    recurrence_group: Optional[str] = None


class LegacyImportResponse(BaseModel):
    trip: TripResponse
    warnings: List[str] = []


class NotesExportResponse(BaseModel):
    trip_id: int
    notes: str
