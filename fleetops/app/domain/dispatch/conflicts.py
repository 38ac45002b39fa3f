"""
Driver assignment conflict checking.

A driver is flagged when another trip of theirs on the same day starts
less than the conflict window (60 minutes by default) before or after the
candidate trip. The check is advisory: it produces a warning, it never
refuses an assignment.
"""

import re
from datetime import date
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel

from fleetops.app.core.config import settings

_TIME = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")


class DriverAvailability(BaseModel):
    """A driver annotated for the assignment picker."""
    driver_id: int
    name: Optional[str] = None
    is_available: bool
    conflict_count: int = 0
    conflicting_trip_ids: List[int] = []


def time_to_minutes(value: Any) -> int:
    """
    Minutes since midnight for "HH:MM" / "HH:MM:SS" text or a time object.

    Missing or malformed values count as 00:00.
    """
    if value is None:
        return 0
    if hasattr(value, "hour") and hasattr(value, "minute"):
        return value.hour * 60 + value.minute

    match = _TIME.match(str(value))
    if not match:
        return 0
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return 0
    return hours * 60 + minutes


def is_conflict(first_start: Any, second_start: Any, window_minutes: int = None) -> bool:
    """True when two start times are strictly closer than the window."""
    window = settings.conflict_window_minutes if window_minutes is None else window_minutes
    return abs(time_to_minutes(first_start) - time_to_minutes(second_start)) < window


def find_conflicts(
    driver_id: int,
    trip_date: date,
    start_time: Any,
    other_trips: Iterable[Any],
    exclude_trip_id: Optional[int] = None,
    window_minutes: int = None
) -> List[Any]:
    """
    Trips that book `driver_id` too close to the candidate slot.

    Args:
        driver_id: Candidate driver
        trip_date: Candidate trip date
        start_time: Candidate trip start time
        other_trips: Trips to compare against (objects with driver_id, date,
            start_time and id attributes)
        exclude_trip_id: The trip being assigned, so it never conflicts with itself
        window_minutes: Override for settings.conflict_window_minutes

    Returns:
        The conflicting trips, in input order
    """
    conflicts = []
    for trip in other_trips:
        if exclude_trip_id is not None and trip.id == exclude_trip_id:
            continue
        if trip.driver_id != driver_id or trip.date != trip_date:
            continue
        if is_conflict(start_time, trip.start_time, window_minutes):
            conflicts.append(trip)
    return conflicts


def check_driver_availability(
    drivers: Iterable[Any],
    trip: Any,
    other_trips: Iterable[Any],
    window_minutes: int = None
) -> List[DriverAvailability]:
    """Annotate every driver with availability for `trip`."""
    other_trips = list(other_trips)
    annotated = []
    for driver in drivers:
        conflicts = find_conflicts(
            driver.id, trip.date, trip.start_time, other_trips,
            exclude_trip_id=trip.id, window_minutes=window_minutes
        )
        annotated.append(DriverAvailability(
            driver_id=driver.id,
            name=getattr(driver, "name", None),
            is_available=not conflicts,
            conflict_count=len(conflicts),
            conflicting_trip_ids=[conflict.id for conflict in conflicts]
        ))
    return annotated


def conflict_warning(conflict_count: int, window_minutes: int = None) -> Optional[str]:
    """Operator-facing warning text, or None when there is nothing to warn about."""
    if conflict_count <= 0:
        return None
    window = settings.conflict_window_minutes if window_minutes is None else window_minutes
    noun = "trip" if conflict_count == 1 else "trips"
    return f"Driver already has {conflict_count} {noun} within {window} minutes of this trip"
