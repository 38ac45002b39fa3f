"""
Recurring trip expansion tests.
"""

from datetime import date

import pytest

from fleetops.app.core.exceptions import ValidationError
from fleetops.app.domain.dispatch.recurrence import CLAMP, ROLLOVER, expand, occurrence_date
from fleetops.app.models.trip_enums import RecurrenceFrequency, TripStatus


def _template(**overrides):
    base = {
        "client_id": 1,
        "date": date(2024, 1, 1),
        "start_time": "09:00",
        "pickup_location": "Hotel",
        "passengers": ["Ann"],
    }
    base.update(overrides)
    return base


def test_weekly_series_dates():
    records = expand(_template(), RecurrenceFrequency.WEEKLY, 4)

    assert [record["date"] for record in records] == [
        date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)
    ]


def test_daily_series_count_and_shared_fields():
    records = expand(_template(amount=250, status=TripStatus.COMPLETED), RecurrenceFrequency.DAILY, 3)

    assert len(records) == 3
    assert records[-1]["date"] == date(2024, 1, 3)
    assert len({record["recurrence_group"] for record in records}) == 1
    for record in records:
        assert record["status"] == TripStatus.SCHEDULED
        assert record["amount"] == 0
        assert record["is_recurring"] is True
        assert record["start_time"] == "09:00"
        assert record["pickup_location"] == "Hotel"


def test_each_record_gets_its_own_passenger_list():
    records = expand(_template(), RecurrenceFrequency.DAILY, 2)
    records[0]["passengers"].append("Bob")

    assert records[1]["passengers"] == ["Ann"]


def test_monthly_clamps_to_month_end_by_default():
    records = expand(_template(date=date(2024, 1, 31)), RecurrenceFrequency.MONTHLY, 3, overflow=CLAMP)

    assert [record["date"] for record in records] == [
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)
    ]


def test_monthly_rollover_spills_into_next_month():
    assert occurrence_date(date(2024, 1, 31), RecurrenceFrequency.MONTHLY, 1, ROLLOVER) == date(2024, 3, 2)
    assert occurrence_date(date(2023, 1, 31), RecurrenceFrequency.MONTHLY, 1, ROLLOVER) == date(2023, 3, 3)
    assert occurrence_date(date(2024, 1, 15), RecurrenceFrequency.MONTHLY, 2, ROLLOVER) == date(2024, 3, 15)


@pytest.mark.parametrize("occurrences", [0, -1, 53])
def test_occurrences_out_of_range(occurrences):
    with pytest.raises(ValidationError) as exc_info:
        expand(_template(), RecurrenceFrequency.DAILY, occurrences)

    assert exc_info.value.details["field"] == "occurrences"


def test_upper_bound_is_accepted():
    assert len(expand(_template(), RecurrenceFrequency.WEEKLY, 52)) == 52


def test_missing_date_is_rejected():
    with pytest.raises(ValidationError):
        expand(_template(date=None), RecurrenceFrequency.DAILY, 2)


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValidationError):
        expand(_template(), "fortnightly", 2)
