"""
Trip API Endpoints.

Booking, editing, status changes and the legacy notes format.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from fleetops.app.core.config import settings
from fleetops.app.core.dependencies import get_coordinator
from fleetops.app.domain.dispatch.coordinator import DispatchCoordinator
from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.schemas.trip import (
    LegacyImportResponse,
    LegacyTripImport,
    NotesExportResponse,
    TripCreate,
    TripCreateResponse,
    TripListResponse,
    TripResponse,
    TripStatusUpdate,
    TripUpdate,
)
from fleetops.app.services.cache import CacheService, table_key

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("", response_model=TripCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """
    Book a trip.

    With `is_recurring`, `frequency` and `occurrences` the whole series is
    created at once and shares one recurrence group.
    """
    trips, group = await coordinator.create_trip(trip_data)
    return TripCreateResponse(
        trips=[TripResponse.model_validate(trip) for trip in trips],
        count=len(trips),
        recurrence_group=group
    )


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    trip_date: Optional[date] = Query(None, alias="date"),
    driver_id: Optional[int] = Query(None),
    client_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """
    List trips ordered by date and start time.

    Results are cached until the TTL runs out or any trip changes.
    """
    cache_key = table_key(
        "trips", "list",
        status_filter.value if status_filter else "", trip_date or "",
        driver_id or "", client_id or "", page, page_size
    )
    cached = await CacheService.get(cache_key)
    if cached is not None:
        return cached

    trips, total = await coordinator.list_trips(
        status=status_filter,
        trip_date=trip_date,
        driver_id=driver_id,
        client_id=client_id,
        page=page,
        page_size=page_size
    )
    payload = TripListResponse(
        trips=[TripResponse.model_validate(trip) for trip in trips],
        total=total,
        page=page,
        page_size=page_size
    ).model_dump(mode="json")

    await CacheService.set(cache_key, payload, ttl_seconds=settings.trip_list_cache_ttl_seconds)
    return payload


@router.post("/import-legacy", response_model=LegacyImportResponse, status_code=status.HTTP_201_CREATED)
async def import_legacy_trip(
    import_data: LegacyTripImport,
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """
    Import a trip whose notes use the packed legacy format.

    A STATUS: prefix in the notes sets the stored status. Anything the
    decoder could not read is reported in `warnings`.
    """
    trip, warnings = await coordinator.import_legacy_trip(import_data)
    return LegacyImportResponse(trip=TripResponse.model_validate(trip), warnings=warnings)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    return await coordinator.get_trip(trip_id)


@router.patch("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """Edit a trip. Completed trips are locked."""
    return await coordinator.update_trip(trip_id, trip_data)


@router.patch("/{trip_id}/status", response_model=TripResponse)
async def update_trip_status(
    status_update: TripStatusUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """
    Move a trip through its lifecycle.

    in_progress and completed need both a driver and a vehicle.
    """
    return await coordinator.transition_status(trip_id, status_update.status)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    await coordinator.delete_trip(trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{trip_id}/notes/export", response_model=NotesExportResponse)
async def export_trip_notes(
    trip_id: int = Path(..., description="Trip ID"),
    coordinator: DispatchCoordinator = Depends(get_coordinator)
):
    """Trip notes rendered in the packed legacy format."""
    notes = await coordinator.export_notes(trip_id)
    return NotesExportResponse(trip_id=trip_id, notes=notes)
