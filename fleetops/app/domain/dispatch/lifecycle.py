"""
Trip lifecycle.

    scheduled ──> in_progress ──> completed
        │              │
        └──────────────┴──> cancelled

completed and cancelled are terminal. Every transition is an explicit
operator action; nothing moves on a timer.
"""

from typing import Any, Dict, FrozenSet

from fleetops.app.core.exceptions import InvalidTransition
from fleetops.app.models.trip_enums import TripStatus

ALLOWED_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.SCHEDULED: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Statuses that need both a driver and a vehicle on the trip
STAFFED_STATUSES = frozenset({TripStatus.IN_PROGRESS, TripStatus.COMPLETED})


def _field(trip: Any, name: str) -> Any:
    if isinstance(trip, dict):
        return trip.get(name)
    return getattr(trip, name, None)


def can_transition(current: TripStatus, target: TripStatus) -> bool:
    return TripStatus(target) in ALLOWED_TRANSITIONS[TripStatus(current)]


def assert_editable(trip: Any) -> None:
    """
    Completed trips are locked against edits and reassignment.

    Raises:
        InvalidTransition: If the trip is completed
    """
    current = TripStatus(_field(trip, "status"))
    if current == TripStatus.COMPLETED:
        raise InvalidTransition(
            f"Trip {_field(trip, 'id')} is completed and can no longer be changed",
            current_status=current
        )


def check_staffing(trip: Any, target: TripStatus) -> None:
    """
    Guard for statuses that need a crew.

    Raises:
        InvalidTransition: If `target` needs a driver and vehicle the trip lacks
    """
    target = TripStatus(target)
    if target not in STAFFED_STATUSES:
        return
    missing = [name for name in ("driver_id", "vehicle_id") if _field(trip, name) is None]
    if missing:
        raise InvalidTransition(
            f"Trip cannot be {target.value.replace('_', ' ')} without "
            + " and ".join(name.replace("_id", "") for name in missing),
            current_status=_field(trip, "status"),
            requested_status=target
        )


def validate_transition(trip: Any, target: TripStatus) -> bool:
    """
    Check that `trip` may move to `target`.

    A request for the status the trip already has is a no-op on a live
    trip and a violation on a terminal one.

    Args:
        trip: Trip object or dict with status, driver_id and vehicle_id
        target: Requested status

    Returns:
        True if the status actually changes, False for a no-op

    Raises:
        InvalidTransition: If the transition is not allowed or the guard fails
    """
    current = TripStatus(_field(trip, "status"))
    try:
        target = TripStatus(target)
    except ValueError:
        raise InvalidTransition(f"Unknown trip status: {target}", current_status=current, requested_status=target)

    if current in TERMINAL_STATUSES:
        raise InvalidTransition(
            f"Trip is {current.value} and its status can no longer change",
            current_status=current,
            requested_status=target
        )
    if target == current:
        return False
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot move trip from {current.value} to {target.value}",
            current_status=current,
            requested_status=target
        )
    check_staffing(trip, target)
    return True
