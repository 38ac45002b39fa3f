"""
Recurring trip expansion.

Turns one trip template plus a repeat rule into concrete, unpersisted trip
records. Persistence is the coordinator's job and happens as one batch.
"""

import uuid
from datetime import date, timedelta
from typing import Any, Dict, List

from dateutil.relativedelta import relativedelta

from fleetops.app.core.config import settings
from fleetops.app.core.exceptions import ValidationError
from fleetops.app.models.trip_enums import RecurrenceFrequency, TripStatus

CLAMP = "clamp"
ROLLOVER = "rollover"


def occurrence_date(base_date: date, frequency: RecurrenceFrequency, index: int, overflow: str = CLAMP) -> date:
    """
    Date of the `index`-th occurrence (0 is the base date itself).

    Monthly steps keep the base day-of-month. When the target month is
    shorter, CLAMP lands on its last day (Jan 31 -> Feb 29 -> Mar 31) and
    ROLLOVER spills the extra days into the following month
    (Jan 31 -> Mar 2 in a leap year).
    """
    frequency = RecurrenceFrequency(frequency)
    if frequency == RecurrenceFrequency.DAILY:
        return base_date + timedelta(days=index)
    if frequency == RecurrenceFrequency.WEEKLY:
        return base_date + timedelta(weeks=index)

    if overflow == ROLLOVER:
        first_of_month = base_date.replace(day=1) + relativedelta(months=index)
        return first_of_month + timedelta(days=base_date.day - 1)
    if overflow != CLAMP:
        raise ValueError(f"Unknown monthly overflow policy: {overflow}")
    # Always offset from the base so a clamped month does not shorten later ones
    return base_date + relativedelta(months=index)


def check_occurrences(occurrences: Any, max_occurrences: int = None) -> int:
    """Raise ValidationError unless 1 <= occurrences <= the configured bound."""
    limit = max_occurrences or settings.max_recurrence_occurrences
    if isinstance(occurrences, bool) or not isinstance(occurrences, int):
        raise ValidationError("Occurrences must be a whole number", field="occurrences")
    if occurrences < 1 or occurrences > limit:
        raise ValidationError(f"Occurrences must be between 1 and {limit}", field="occurrences")
    return occurrences


def expand(
    base: Dict[str, Any],
    frequency: RecurrenceFrequency,
    occurrences: int,
    overflow: str = None,
    max_occurrences: int = None
) -> List[Dict[str, Any]]:
    """
    Expand a trip template into `occurrences` records.

    Args:
        base: Trip fields; must contain a `date`
        frequency: daily, weekly or monthly
        occurrences: Number of records to produce, first dated like `base`
        overflow: Monthly overflow policy (defaults to settings)
        max_occurrences: Upper bound (defaults to settings)

    Returns:
        Ordered list of trip field dicts, each SCHEDULED with amount 0 and
        sharing one recurrence_group

    Raises:
        ValidationError: If the date is missing or occurrences is out of range
    """
    overflow = overflow or settings.recurrence_monthly_overflow
    check_occurrences(occurrences, max_occurrences)

    base_date = base.get("date")
    if not isinstance(base_date, date):
        raise ValidationError("A start date is required for recurring trips", field="date")

    try:
        frequency = RecurrenceFrequency(frequency)
    except ValueError:
        raise ValidationError(f"Unknown recurrence frequency: {frequency}", field="frequency")

    group = str(uuid.uuid4())
    records = []
    for index in range(occurrences):
        record = dict(base)
        record["date"] = occurrence_date(base_date, frequency, index, overflow)
        record["status"] = TripStatus.SCHEDULED
        record["amount"] = 0
        record["is_recurring"] = True
        record["recurrence_group"] = group
        if record.get("passengers") is not None:
            record["passengers"] = list(record["passengers"])
        records.append(record)

    return records
