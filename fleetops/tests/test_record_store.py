"""
Record store tests.

Transactions, batch inserts and the change feed.
"""

import pytest
from datetime import date
from sqlalchemy import select, func

from fleetops.app.core.exceptions import StoreError
from fleetops.app.models.fleet import Driver
from fleetops.app.models.trip_assignment import TripAssignment
from fleetops.app.models.trip_enums import AssignmentStatus, TripStatus
from fleetops.app.services.change_feed import INSERT, UPDATE, DELETE


async def _count(db_session, model):
    result = await db_session.execute(select(func.count(model.id)))
    return result.scalar()


@pytest.mark.asyncio
async def test_insert_assigns_id_and_publishes_after_commit(store, feed, fleet):
    events = []
    feed.subscribe("drivers", events.append)

    driver = await store.insert("drivers", {"name": "Dee Driver"})

    assert driver.id is not None
    assert driver.is_active is True
    assert [(event.event, event.record_id) for event in events] == [(INSERT, driver.id)]


@pytest.mark.asyncio
async def test_change_events_reach_redis(store, redis_mock, fleet):
    await store.update("drivers", fleet["driver_id"], {"contact": "+199"})

    channel, message = redis_mock.published[-1]
    assert channel.endswith("drivers")
    assert '"UPDATE"' in message


@pytest.mark.asyncio
async def test_transaction_rolls_back_everything(store, feed, db_session, fleet):
    events = []
    feed.subscribe("drivers", events.append)
    before = await _count(db_session, Driver)

    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.insert("drivers", {"name": "Temp One"})
            await store.insert("drivers", {"name": "Temp Two"})
            raise RuntimeError("abort")

    assert await _count(db_session, Driver) == before
    assert events == []


@pytest.mark.asyncio
async def test_nested_transaction_commits_once(store, feed, db_session, fleet):
    events = []
    feed.subscribe("drivers", events.append)

    async with store.transaction():
        await store.insert("drivers", {"name": "Outer"})
        async with store.transaction():
            await store.insert("drivers", {"name": "Inner"})
        assert events == []

    assert len(events) == 2


@pytest.mark.asyncio
async def test_insert_many_is_all_or_nothing(store, db_session, fleet):
    records = [
        {"trip_id": 1, "driver_id": fleet["driver_id"], "status": AssignmentStatus.PENDING},
        {"trip_id": 1, "driver_id": 99999, "status": AssignmentStatus.PENDING},
    ]

    with pytest.raises(StoreError) as exc_info:
        await store.insert_many("trip_assignments", records)

    assert exc_info.value.details["operation"] == "insert_many trip_assignments"
    assert await _count(db_session, TripAssignment) == 0


@pytest.mark.asyncio
async def test_query_filters_order_and_count(store, fleet):
    base = {"client_id": fleet["individual_id"], "start_time": "10:00"}
    await store.insert_many("trips", [
        {**base, "date": date(2024, 5, 2), "driver_id": fleet["driver_id"]},
        {**base, "date": date(2024, 5, 1), "driver_id": fleet["other_driver_id"]},
        {**base, "date": date(2024, 5, 3)},
    ])

    staffed = await store.query(
        "trips",
        {"driver_id": [fleet["driver_id"], fleet["other_driver_id"]]},
        order=["-date"]
    )
    unstaffed = await store.query("trips", {"driver_id": None})

    assert [trip.date.day for trip in staffed] == [2, 1]
    assert len(unstaffed) == 1
    assert unstaffed[0].status == TripStatus.SCHEDULED
    assert await store.count("trips") == 3
    assert await store.count("trips", {"date": date(2024, 5, 1)}) == 1


@pytest.mark.asyncio
async def test_update_and_delete_missing_rows(store, feed, fleet):
    events = []
    feed.subscribe("drivers", events.append)

    assert await store.update("drivers", 99999, {"name": "Ghost"}) is None
    assert await store.delete("drivers", 99999) is False
    assert await store.delete("drivers", fleet["inactive_driver_id"]) is True
    assert [event.event for event in events] == [DELETE]


@pytest.mark.asyncio
async def test_update_rejects_unknown_column(store, fleet):
    with pytest.raises(ValueError):
        await store.update("drivers", fleet["driver_id"], {"nickname": "Speedy"})


@pytest.mark.asyncio
async def test_messages_are_read_only(store):
    with pytest.raises(ValueError):
        await store.insert("trip_messages", {"trip_id": 1, "sender_name": "x", "message": "hi"})
    assert await store.query("trip_messages", {"trip_id": 1}) == []


def test_unsubscribe_stops_delivery(feed):
    events = []
    unsubscribe = feed.subscribe("trips", events.append)
    unsubscribe()

    assert feed._subscribers["trips"] == []
    assert feed.channel("trips") == "fleetops:changes:trips"


@pytest.mark.asyncio
async def test_update_event_kind(store, feed, fleet):
    events = []
    feed.subscribe("vehicles", events.append)

    vehicle = await store.update("vehicles", fleet["vehicle_id"], {"is_active": False})

    assert vehicle.is_active is False
    assert events[0].event == UPDATE
