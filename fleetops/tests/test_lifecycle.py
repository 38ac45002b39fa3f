"""
Trip lifecycle tests.
"""

import pytest

from fleetops.app.core.exceptions import InvalidTransition
from fleetops.app.domain.dispatch.lifecycle import (
    assert_editable,
    can_transition,
    check_staffing,
    validate_transition,
)
from fleetops.app.models.trip_enums import TripStatus


def _trip(status, driver_id=1, vehicle_id=1):
    return {"id": 42, "status": status, "driver_id": driver_id, "vehicle_id": vehicle_id}


def test_allowed_paths():
    assert can_transition(TripStatus.SCHEDULED, TripStatus.IN_PROGRESS)
    assert can_transition(TripStatus.IN_PROGRESS, TripStatus.COMPLETED)
    assert can_transition(TripStatus.SCHEDULED, TripStatus.CANCELLED)
    assert can_transition(TripStatus.IN_PROGRESS, TripStatus.CANCELLED)
    assert not can_transition(TripStatus.SCHEDULED, TripStatus.COMPLETED)
    assert not can_transition(TripStatus.IN_PROGRESS, TripStatus.SCHEDULED)


def test_start_without_driver_is_refused():
    trip = _trip(TripStatus.SCHEDULED, driver_id=None)

    with pytest.raises(InvalidTransition) as exc_info:
        validate_transition(trip, TripStatus.IN_PROGRESS)

    assert exc_info.value.status_code == 409
    assert "driver" in exc_info.value.message
    assert trip["status"] == TripStatus.SCHEDULED


def test_complete_without_vehicle_is_refused():
    with pytest.raises(InvalidTransition):
        validate_transition(_trip(TripStatus.IN_PROGRESS, vehicle_id=None), TripStatus.COMPLETED)


def test_cancel_needs_no_crew():
    assert validate_transition(_trip(TripStatus.SCHEDULED, None, None), TripStatus.CANCELLED) is True


@pytest.mark.parametrize("terminal", [TripStatus.COMPLETED, TripStatus.CANCELLED])
@pytest.mark.parametrize("target", list(TripStatus))
def test_terminal_statuses_never_change(terminal, target):
    with pytest.raises(InvalidTransition):
        validate_transition(_trip(terminal), target)


def test_same_status_on_live_trip_is_a_no_op():
    assert validate_transition(_trip(TripStatus.IN_PROGRESS), TripStatus.IN_PROGRESS) is False


def test_skipping_a_step_is_refused():
    with pytest.raises(InvalidTransition) as exc_info:
        validate_transition(_trip(TripStatus.SCHEDULED), TripStatus.COMPLETED)

    assert exc_info.value.error_code == "ERR_TRIP_TRANSITION"


def test_unknown_target_is_refused():
    with pytest.raises(InvalidTransition):
        validate_transition(_trip(TripStatus.SCHEDULED), "teleported")


def test_completed_trip_is_locked():
    assert_editable(_trip(TripStatus.CANCELLED))
    with pytest.raises(InvalidTransition):
        assert_editable(_trip(TripStatus.COMPLETED))


def test_staffing_check_ignores_unstaffed_statuses():
    check_staffing(_trip(TripStatus.SCHEDULED, None, None), TripStatus.SCHEDULED)
    with pytest.raises(InvalidTransition):
        check_staffing(_trip(TripStatus.IN_PROGRESS, 1, None), TripStatus.IN_PROGRESS)
