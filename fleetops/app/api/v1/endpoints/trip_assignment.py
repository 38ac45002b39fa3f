"""
Driver Assignment API Endpoints.

Dispatchers pick a driver for a trip; schedule conflicts are reported as
a warning and never block the assignment.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query

from fleetops.app.core.dependencies import get_coordinator
from fleetops.app.domain.dispatch.coordinator import DispatchCoordinator
from fleetops.app.schemas.driver_assignment import (
    AssignmentReply,
    DriverAssignment,
    DriverAssignmentResponse,
    DriverAvailabilityList,
    DriverAvailabilityResponse,
    TripAssignmentResponse,
)
from fleetops.app.schemas.trip import TripResponse

router = APIRouter(prefix="/trips", tags=["Driver Assignment"])


@router.get("/{trip_id}/driver-availability", response_model=DriverAvailabilityList)
async def get_driver_availability(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """Active drivers with the number of their trips that clash with this one."""
    drivers = await coordinator.driver_availability(trip_id)
    return DriverAvailabilityList(
        trip_id=trip_id,
        drivers=[DriverAvailabilityResponse(**driver.model_dump()) for driver in drivers]
    )


@router.post("/{trip_id}/assign-driver", response_model=DriverAssignmentResponse)
async def assign_driver_to_trip(
    assignment: DriverAssignment,
    trip_id: int = Path(..., description="Trip ID"),
    acknowledge_conflicts: bool = Query(False, description="Operator has seen the conflict warning"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """
    Assign a driver to a trip.

    Records a pending assignment, sets the trip's driver and notifies the
    driver, all in one transaction.
    """
    outcome = await coordinator.assign_driver(
        trip_id,
        assignment.driver_id,
        note=assignment.note,
        acknowledge_conflicts=acknowledge_conflicts
    )
    return DriverAssignmentResponse(
        trip=TripResponse.model_validate(outcome["trip"]),
        assignment=TripAssignmentResponse.model_validate(outcome["assignment"]),
        conflict_count=outcome["conflict_count"],
        conflicting_trip_ids=outcome["conflicting_trip_ids"],
        warning=outcome["warning"]
    )


@router.post("/{trip_id}/assignments/respond", response_model=TripAssignmentResponse)
async def respond_to_assignment(
    reply: AssignmentReply,
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """A driver accepts or rejects an assignment."""
    return await coordinator.record_assignment_response(
        trip_id, reply.driver_id, reply.status, note=reply.note
    )


@router.get("/{trip_id}/assignments", response_model=List[TripAssignmentResponse])
async def list_trip_assignments(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """Assignment history, newest first."""
    return await coordinator.list_assignments(trip_id)
