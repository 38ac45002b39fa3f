"""
Dispatch Coordinator (Domain Logic).

Orchestrates trip booking, editing, status changes and driver assignment
on top of the record store. Validation happens before any store call;
multi-row writes (recurring batches, assignment with its notification and
audit entry) are wrapped in one store transaction so they land together or
not at all.
"""

import logging
import re
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from fleetops.app.core.exceptions import ResourceNotFoundError, StoreError, ValidationError
from fleetops.app.domain.dispatch import notes_codec
from fleetops.app.domain.dispatch.conflicts import (
    check_driver_availability,
    conflict_warning,
    find_conflicts,
    DriverAvailability,
)
from fleetops.app.domain.dispatch.lifecycle import (
    STAFFED_STATUSES,
    assert_editable,
    check_staffing,
    validate_transition,
)
from fleetops.app.domain.dispatch.recurrence import check_occurrences, expand
from fleetops.app.models.trip_enums import (
    AIRPORT_KINDS,
    RETURN_TIME_KINDS,
    AssignmentStatus,
    ClientType,
    ServiceKind,
    TripStatus,
)
from fleetops.app.schemas.trip import LegacyTripImport, TripCreate, TripUpdate
from fleetops.app.services.audit import AuditAction, log_event
from fleetops.app.services.notification_service import NotificationService
from fleetops.app.services.record_store import RecordStore

logger = logging.getLogger("fleetops.dispatch")

_TIME_FORMAT = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

# Trip columns an operator may set directly
EDITABLE_FIELDS = (
    "client_id", "driver_id", "vehicle_id", "date", "start_time", "end_time",
    "service_kind", "pickup_location", "dropoff_location", "notes",
    "flight_number", "airline", "terminal", "passengers",
)

REQUIRED_FIELDS = ("client_id", "date", "start_time", "service_kind")

FLIGHT_FIELDS = {"flight_number": "flight", "airline": "airline", "terminal": "terminal"}

RESPONSE_STATUSES = frozenset({AssignmentStatus.ACCEPTED, AssignmentStatus.REJECTED})


class DispatchCoordinator:
    """
    Trip operations for one operator.

    Args:
        store: Record store bound to the request's session
        actor: Operator name recorded on audit entries (None for system calls)
    """

    def __init__(self, store: RecordStore, actor: Optional[str] = None):
        self.store = store
        self.actor = actor

    @asynccontextmanager
    async def _operation(self, description: str):
        try:
            yield
        except StoreError as exc:
            logger.error(
                "Dispatch operation failed",
                extra={"operation": description, "error_code": exc.error_code, "cause": exc.message}
            )
            raise exc.with_context(f"Failed to {description}") from exc

    async def _audit(self, action: str, trip_id: Optional[int], metadata: Dict[str, Any] = None):
        await log_event(
            self.store.db,
            action=action,
            actor=self.actor,
            trip_id=trip_id,
            metadata=metadata,
            commit=False
        )

    async def _require(self, table: str, resource: str, record_id: Any):
        record = await self.store.get(table, record_id)
        if record is None:
            raise ResourceNotFoundError(resource, record_id)
        return record

    # Validation

    @staticmethod
    def _check_required(fields: Dict[str, Any]) -> None:
        if fields.get("client_id") is None:
            raise ValidationError("A client is required", field="client_id")
        if not isinstance(fields.get("date"), date):
            raise ValidationError("A trip date is required", field="date")
        if not (fields.get("start_time") or "").strip():
            raise ValidationError("A start time is required", field="start_time")

    @staticmethod
    def _check_time(value: Optional[str], field: str) -> str:
        value = (value or "").strip()
        if not _TIME_FORMAT.match(value):
            raise ValidationError(f"{field} must be HH:MM or HH:MM:SS", field=field, details={"value": value})
        return value

    async def _prepare(self, fields: Dict[str, Any], explicit: frozenset) -> Dict[str, Any]:
        """
        Validate and normalize trip fields into a row.

        `explicit` names the fields the caller actually supplied; values
        decoded out of packed notes only fill fields outside that set.
        """
        self._check_required(fields)
        record = {name: fields.get(name) for name in EDITABLE_FIELDS}
        record["start_time"] = self._check_time(record["start_time"], "start_time")

        kind = ServiceKind(record.get("service_kind") or ServiceKind.ONE_WAY_TRANSFER)
        record["service_kind"] = kind
        if kind in RETURN_TIME_KINDS:
            if not (record.get("end_time") or "").strip():
                raise ValidationError(f"An end time is required for {kind.value} trips", field="end_time")
            record["end_time"] = self._check_time(record["end_time"], "end_time")
        else:
            record["end_time"] = None

        decoded = notes_codec.decode(record.get("notes"))
        if decoded.status is not None:
            logger.info(
                "Ignoring status marker in trip notes",
                extra={"marker": decoded.status.value, "trip_id": fields.get("id")}
            )
        record["notes"] = decoded.notes or None
        if decoded.flight is not None:
            for column, attribute in FLIGHT_FIELDS.items():
                if column not in explicit and getattr(decoded.flight, attribute):
                    record[column] = getattr(decoded.flight, attribute)
        if decoded.passengers and "passengers" not in explicit:
            record["passengers"] = decoded.passengers

        if kind not in AIRPORT_KINDS:
            for column in FLIGHT_FIELDS:
                record[column] = None

        client = await self._require("clients", "Client", record["client_id"])
        if client.client_type == ClientType.ORGANIZATION:
            names = notes_codec.clean_passengers(record.get("passengers"))
            record["passengers"] = names or None
        else:
            record["passengers"] = None

        if record.get("driver_id") is not None:
            await self._require("drivers", "Driver", record["driver_id"])
        if record.get("vehicle_id") is not None:
            await self._require("vehicles", "Vehicle", record["vehicle_id"])

        return record

    # Trips

    async def create_trip(self, data: TripCreate) -> Tuple[List[Any], Optional[str]]:
        """
        Book a trip, or a whole recurring series.

        Returns:
            (created trips in date order, recurrence group or None)

        Raises:
            ValidationError: Missing or malformed fields
            ResourceNotFoundError: Unknown client, driver or vehicle
        """
        if data.is_recurring:
            if data.frequency is None:
                raise ValidationError("A frequency is required for recurring trips", field="frequency")
            if data.occurrences is None:
                raise ValidationError("The number of occurrences is required for recurring trips", field="occurrences")
            check_occurrences(data.occurrences)

        fields = data.model_dump()
        explicit = frozenset(name for name, value in fields.items() if value is not None)
        record = await self._prepare(fields, explicit)

        if not data.is_recurring:
            record.update(status=TripStatus.SCHEDULED, amount=0, is_recurring=False)
            async with self._operation("create trip"):
                async with self.store.transaction():
                    trip = await self.store.insert("trips", record)
                    await self._audit(AuditAction.TRIP_CREATED, trip.id, {"date": str(trip.date)})
            logger.info("Trip created", extra={"trip_id": trip.id, "actor": self.actor})
            return [trip], None

        records = expand(record, data.frequency, data.occurrences)
        group = records[0]["recurrence_group"]
        async with self._operation("create recurring trips"):
            async with self.store.transaction():
                trips = await self.store.insert_many("trips", records)
                await self._audit(
                    AuditAction.RECURRING_TRIPS_CREATED,
                    trips[0].id,
                    {
                        "recurrence_group": group,
                        "frequency": data.frequency.value,
                        "trip_ids": [trip.id for trip in trips],
                    }
                )
        logger.info(
            "Recurring trips created",
            extra={"recurrence_group": group, "count": len(trips), "actor": self.actor}
        )
        return trips, group

    async def get_trip(self, trip_id: int):
        return await self._require("trips", "Trip", trip_id)

    async def list_trips(
        self,
        status: Optional[TripStatus] = None,
        trip_date: Optional[date] = None,
        driver_id: Optional[int] = None,
        client_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Any], int]:
        """Trips ordered by date and start time, with the unpaged total."""
        filters = {
            "status": status,
            "date": trip_date,
            "driver_id": driver_id,
            "client_id": client_id,
        }
        filters = {key: value for key, value in filters.items() if value is not None}
        total = await self.store.count("trips", filters)
        trips = await self.store.query(
            "trips",
            filters,
            order=["date", "start_time", "id"],
            limit=page_size,
            offset=(page - 1) * page_size
        )
        return trips, total

    async def update_trip(self, trip_id: int, data: TripUpdate):
        """
        Edit a trip. Fields left out of `data` keep their stored values.

        Raises:
            InvalidTransition: Completed trip, disallowed status change, or an
                edit that would leave an active trip without driver or vehicle
        """
        trip = await self.get_trip(trip_id)
        assert_editable(trip)

        patch = data.model_dump(exclude_unset=True)
        # An explicit null on a required column keeps the stored value
        for name in REQUIRED_FIELDS:
            if name in patch and patch[name] is None:
                del patch[name]
        requested_status = patch.pop("status", None)
        merged = {name: getattr(trip, name) for name in EDITABLE_FIELDS}
        merged.update(patch)
        merged["id"] = trip.id
        explicit = frozenset(name for name, value in patch.items() if value is not None)
        record = await self._prepare(merged, explicit)

        candidate = {**record, "id": trip.id, "status": trip.status}
        if requested_status is not None:
            if validate_transition(candidate, requested_status):
                record["status"] = TripStatus(requested_status)
        elif trip.status in STAFFED_STATUSES:
            check_staffing(candidate, trip.status)

        changes = {key: value for key, value in record.items() if getattr(trip, key) != value}
        if not changes:
            return trip

        previous_status = trip.status
        async with self._operation("update trip"):
            async with self.store.transaction():
                trip = await self.store.update("trips", trip_id, changes)
                await self._audit(AuditAction.TRIP_UPDATED, trip_id, {"fields": sorted(changes)})
                if "status" in changes:
                    await self._audit(
                        AuditAction.TRIP_STATUS_CHANGED,
                        trip_id,
                        {"from": previous_status.value, "to": trip.status.value}
                    )
        logger.info("Trip updated", extra={"trip_id": trip_id, "fields": sorted(changes), "actor": self.actor})
        return trip

    async def transition_status(self, trip_id: int, status: TripStatus):
        """
        Move a trip to `status`.

        Asking for the status a live trip already has changes nothing.
        """
        trip = await self.get_trip(trip_id)
        if not validate_transition(trip, status):
            return trip

        previous_status = trip.status
        async with self._operation("update trip status"):
            async with self.store.transaction():
                trip = await self.store.update("trips", trip_id, {"status": TripStatus(status)})
                await self._audit(
                    AuditAction.TRIP_STATUS_CHANGED,
                    trip_id,
                    {"from": previous_status.value, "to": trip.status.value}
                )
        logger.info(
            "Trip status changed",
            extra={"trip_id": trip_id, "from": previous_status.value, "to": trip.status.value}
        )
        return trip

    async def delete_trip(self, trip_id: int) -> None:
        """Remove the trip row. Assignments and messages are left for the store to clean up."""
        await self.get_trip(trip_id)
        async with self._operation("delete trip"):
            async with self.store.transaction():
                await self.store.delete("trips", trip_id)
                await self._audit(AuditAction.TRIP_DELETED, trip_id)
        logger.info("Trip deleted", extra={"trip_id": trip_id, "actor": self.actor})

    # Drivers

    async def assign_driver(
        self,
        trip_id: int,
        driver_id: Optional[int],
        note: Optional[str] = None,
        acknowledge_conflicts: bool = False
    ) -> Dict[str, Any]:
        """
        Assign a driver to a trip.

        Conflicts never block the assignment; they come back as a warning.
        The pending assignment record, the trip's driver and the driver's
        notification are written in one transaction.

        Returns:
            dict with trip, assignment, conflict_count, conflicting_trip_ids
            and warning
        """
        if driver_id is None:
            raise ValidationError("A driver is required", field="driver_id")

        trip = await self.get_trip(trip_id)
        assert_editable(trip)
        driver = await self._require("drivers", "Driver", driver_id)
        if not driver.is_active:
            raise ValidationError(f"Driver {driver_id} is not active", field="driver_id")

        same_day = await self.store.query("trips", {"driver_id": driver_id, "date": trip.date})
        conflicts = find_conflicts(driver_id, trip.date, trip.start_time, same_day, exclude_trip_id=trip.id)
        warning = conflict_warning(len(conflicts))
        if warning:
            logger.warning(
                "Driver assigned with schedule conflicts",
                extra={
                    "trip_id": trip_id,
                    "driver_id": driver_id,
                    "conflicting_trip_ids": [conflict.id for conflict in conflicts],
                    "acknowledged": acknowledge_conflicts,
                }
            )

        async with self._operation("assign driver"):
            async with self.store.transaction():
                assignment = await self.store.insert("trip_assignments", {
                    "trip_id": trip.id,
                    "driver_id": driver_id,
                    "status": AssignmentStatus.PENDING,
                    "notes": note,
                })
                trip = await self.store.update("trips", trip.id, {"driver_id": driver_id})
                await self.store.insert("notifications", {
                    "driver_id": driver_id,
                    **NotificationService.build_assignment_notice(trip, note),
                })
                await self._audit(
                    AuditAction.DRIVER_ASSIGNED,
                    trip.id,
                    {
                        "driver_id": driver_id,
                        "assignment_id": assignment.id,
                        "conflict_count": len(conflicts),
                        "conflicts_acknowledged": acknowledge_conflicts,
                    }
                )

        logger.info("Driver assigned", extra={"trip_id": trip.id, "driver_id": driver_id, "actor": self.actor})
        return {
            "trip": trip,
            "assignment": assignment,
            "conflict_count": len(conflicts),
            "conflicting_trip_ids": [conflict.id for conflict in conflicts],
            "warning": warning,
        }

    async def driver_availability(self, trip_id: int) -> List[DriverAvailability]:
        """Every active driver, annotated with conflicts against this trip's slot."""
        trip = await self.get_trip(trip_id)
        drivers = await self.store.query("drivers", {"is_active": True}, order=["name", "id"])
        if not drivers:
            return []
        same_day = await self.store.query(
            "trips",
            {"date": trip.date, "driver_id": [driver.id for driver in drivers]}
        )
        return check_driver_availability(drivers, trip, same_day)

    async def record_assignment_response(
        self,
        trip_id: int,
        driver_id: int,
        status: AssignmentStatus,
        note: Optional[str] = None
    ):
        """
        Append a driver's accept/reject answer to the assignment history.

        Raises:
            ValidationError: Status is not accepted/rejected, or the driver
                was never assigned to the trip
        """
        try:
            status = AssignmentStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown assignment status: {status}", field="status")
        if status not in RESPONSE_STATUSES:
            raise ValidationError("A response must be accepted or rejected", field="status")

        await self.get_trip(trip_id)
        prior = await self.store.query(
            "trip_assignments", {"trip_id": trip_id, "driver_id": driver_id}, limit=1
        )
        if not prior:
            raise ValidationError(
                f"Driver {driver_id} has no assignment on trip {trip_id}",
                field="driver_id"
            )

        async with self._operation("record assignment response"):
            async with self.store.transaction():
                response = await self.store.insert("trip_assignments", {
                    "trip_id": trip_id,
                    "driver_id": driver_id,
                    "status": status,
                    "notes": note,
                })
                await self._audit(
                    AuditAction.ASSIGNMENT_RESPONDED,
                    trip_id,
                    {"driver_id": driver_id, "status": status.value}
                )
        return response

    async def list_assignments(self, trip_id: int) -> List[Any]:
        """Assignment history, newest first."""
        await self.get_trip(trip_id)
        return await self.store.query(
            "trip_assignments", {"trip_id": trip_id}, order=["-assigned_at", "-id"]
        )

    async def list_messages(self, trip_id: int) -> List[Any]:
        await self.get_trip(trip_id)
        return await self.store.query("trip_messages", {"trip_id": trip_id}, order=["timestamp", "id"])

    # Legacy notes format

    async def import_legacy_trip(self, data: LegacyTripImport) -> Tuple[Any, List[str]]:
        """
        Store a trip whose notes still carry the packed legacy format.

        The STATUS: prefix, when present, becomes the stored status;
        otherwise `data.status`, otherwise scheduled. Flight lines and the
        passenger block are moved to their columns.

        Returns:
            (created trip, codec warnings)
        """
        fields = data.model_dump()
        self._check_required(fields)
        decoded = notes_codec.decode(data.notes)
        status = decoded.status or data.status or TripStatus.SCHEDULED

        await self._require("clients", "Client", data.client_id)
        if data.driver_id is not None:
            await self._require("drivers", "Driver", data.driver_id)
        if data.vehicle_id is not None:
            await self._require("vehicles", "Vehicle", data.vehicle_id)

        flight = decoded.flight or notes_codec.FlightInfo()
        record = {
            "client_id": data.client_id,
            "driver_id": data.driver_id,
            "vehicle_id": data.vehicle_id,
            "date": data.date,
            "start_time": data.start_time.strip(),
            "end_time": (data.end_time or "").strip() or None,
            "service_kind": data.service_kind,
            "status": status,
            "pickup_location": data.pickup_location,
            "dropoff_location": data.dropoff_location,
            "notes": decoded.notes or None,
            "flight_number": flight.flight,
            "airline": flight.airline,
            "terminal": flight.terminal,
            "passengers": decoded.passengers or None,
            "amount": data.amount,
            "is_recurring": False,
        }
        check_staffing(record, status)

        async with self._operation("import trip"):
            async with self.store.transaction():
                trip = await self.store.insert("trips", record)
                await self._audit(
                    AuditAction.TRIP_IMPORTED,
                    trip.id,
                    {"status": status.value, "warnings": decoded.warnings}
                )
        logger.info(
            "Legacy trip imported",
            extra={"trip_id": trip.id, "status": status.value, "warning_count": len(decoded.warnings)}
        )
        return trip, decoded.warnings

    async def export_notes(self, trip_id: int) -> str:
        """The trip's notes in the packed legacy format, status prefix included."""
        trip = await self.get_trip(trip_id)
        flight = notes_codec.FlightInfo(flight=trip.flight_number, airline=trip.airline, terminal=trip.terminal)
        return notes_codec.encode(
            notes=trip.notes,
            flight=flight,
            passengers=trip.passengers,
            status=trip.status
        )
