"""
Driver assignment schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from fleetops.app.models.trip_enums import AssignmentStatus
from fleetops.app.schemas.trip import TripResponse


class DriverAssignment(BaseModel):
    """Schema for assigning a driver to a trip."""
    driver_id: Optional[int] = None
    note: Optional[str] = Field(None, max_length=2000)


class AssignmentReply(BaseModel):
    """A driver's answer to an assignment."""
    driver_id: int
    status: AssignmentStatus
    note: Optional[str] = Field(None, max_length=2000)


class TripAssignmentResponse(BaseModel):
    """One row of a trip's assignment history."""
    id: int
    trip_id: int
    driver_id: int
    status: AssignmentStatus
    notes: Optional[str]
    assigned_at: datetime

    class Config:
        from_attributes = True


class DriverAssignmentResponse(BaseModel):
    """Response after driver assignment."""
    trip: TripResponse
    assignment: TripAssignmentResponse
    conflict_count: int
    conflicting_trip_ids: List[int] = []
    warning: Optional[str] = None


class DriverAvailabilityResponse(BaseModel):
    driver_id: int
    name: Optional[str]
    is_available: bool
    conflict_count: int
    conflicting_trip_ids: List[int] = []


class DriverAvailabilityList(BaseModel):
    trip_id: int
    drivers: List[DriverAvailabilityResponse]
