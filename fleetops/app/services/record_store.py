"""
Record store.

The generic store interface the dispatch core runs against:

    insert(table, record)         -> record with id
    insert_many(table, records)   -> records with ids (all or nothing)
    update(table, id, patch)      -> record
    delete(table, id)             -> None
    query(table, filter, order)   -> records

backed by an SQLAlchemy async session. Each call runs under the store
timeout and commits on its own, unless it happens inside `transaction()`,
in which case everything commits (or rolls back) together. Change events
are published only after a successful commit.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.reliability import call_with_timeout
from fleetops.app.models.audit_log import AuditLog
from fleetops.app.models.fleet import Client, Driver, Vehicle
from fleetops.app.models.notification import Notification
from fleetops.app.models.trip import Trip
from fleetops.app.models.trip_assignment import TripAssignment
from fleetops.app.models.trip_message import TripMessage
from fleetops.app.services.change_feed import ChangeFeed, INSERT, UPDATE, DELETE

logger = logging.getLogger("fleetops.store")

TABLES = {
    model.__tablename__: model
    for model in (Trip, TripAssignment, TripMessage, Driver, Vehicle, Client, AuditLog, Notification)
}

# Tables this service may read but never write
READ_ONLY_TABLES = frozenset({TripMessage.__tablename__})


class RecordStore:

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None, timeout_seconds: float = None):
        self.db = db
        self.feed = feed
        self.timeout_seconds = timeout_seconds
        self._depth = 0
        self._pending_events: List[Tuple[str, str, Any]] = []

    # Helpers

    def model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    def _writable(self, table: str):
        if table in READ_ONLY_TABLES:
            raise ValueError(f"Table {table} is read-only for the dispatch store")
        return self.model(table)

    async def _run(self, operation: str, awaitable):
        return await call_with_timeout(operation, awaitable, self.timeout_seconds)

    async def _finish(self, events: Iterable[Tuple[str, str, Any]]) -> None:
        """Commit now, or defer to the enclosing transaction."""
        self._pending_events.extend(events)
        if self._depth == 0:
            await self._commit()

    async def _commit(self) -> None:
        try:
            await self._run("commit", self.db.commit())
        except Exception:
            self._pending_events.clear()
            await self.db.rollback()
            raise
        events, self._pending_events = self._pending_events, []
        if self.feed is not None:
            for table, event, record_id in events:
                await self.feed.publish(table, event, record_id)

    async def _flush_and_refresh(self, operation: str, objects: Sequence[Any]) -> None:
        async def flush():
            await self.db.flush()
            # Pull server-side defaults (ids, timestamps) back onto the objects
            for obj in objects:
                await self.db.refresh(obj)

        try:
            await self._run(operation, flush())
        except Exception:
            if self._depth == 0:
                await self.db.rollback()
            raise

    @asynccontextmanager
    async def transaction(self):
        """
        Group several store calls into one atomic unit.

        Nested use joins the outer transaction.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._pending_events.clear()
                await self.db.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                await self._commit()

    # Reads

    async def get(self, table: str, record_id: Any):
        model = self.model(table)
        return await self._run(f"get {table}", self.db.get(model, record_id))

    def _where(self, model, statement, filter: Optional[Dict[str, Any]]):
        for column_name, value in (filter or {}).items():
            column = getattr(model, column_name)
            if isinstance(value, (list, tuple, set, frozenset)):
                statement = statement.where(column.in_(list(value)))
            elif value is None:
                statement = statement.where(column.is_(None))
            else:
                statement = statement.where(column == value)
        return statement

    async def count(self, table: str, filter: Optional[Dict[str, Any]] = None) -> int:
        model = self.model(table)
        statement = self._where(model, select(func.count(model.id)), filter)

        async def fetch():
            result = await self.db.execute(statement)
            return result.scalar() or 0

        return await self._run(f"count {table}", fetch())

    async def query(
        self,
        table: str,
        filter: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Any]:
        """
        Select rows by column equality.

        Filter values that are lists, tuples or sets match any member.
        Order entries are column names; a leading "-" sorts descending.
        """
        model = self.model(table)
        statement = self._where(model, select(model), filter)

        for entry in order or []:
            descending = entry.startswith("-")
            column = getattr(model, entry.lstrip("-"))
            statement = statement.order_by(column.desc() if descending else column.asc())

        if offset:
            statement = statement.offset(offset)
        if limit:
            statement = statement.limit(limit)

        async def fetch():
            result = await self.db.execute(statement)
            return list(result.scalars().all())

        return await self._run(f"query {table}", fetch())

    # Writes

    async def insert(self, table: str, record: Dict[str, Any]):
        model = self._writable(table)
        obj = model(**record)
        self.db.add(obj)
        await self._flush_and_refresh(f"insert {table}", [obj])
        await self._finish([(table, INSERT, obj.id)])
        return obj

    async def insert_many(self, table: str, records: Sequence[Dict[str, Any]]) -> List[Any]:
        """Insert a batch in one flush; either every row is stored or none."""
        model = self._writable(table)
        objects = [model(**record) for record in records]
        if not objects:
            return []
        self.db.add_all(objects)
        await self._flush_and_refresh(f"insert_many {table}", objects)
        await self._finish([(table, INSERT, obj.id) for obj in objects])
        return objects

    async def update(self, table: str, record_id: Any, patch: Dict[str, Any]):
        """
        Apply `patch` to one row.

        Returns:
            The updated row, or None if it does not exist
        """
        model = self._writable(table)
        obj = await self.get(table, record_id)
        if obj is None:
            return None
        for key, value in patch.items():
            if not hasattr(model, key):
                raise ValueError(f"Unknown column {table}.{key}")
            setattr(obj, key, value)
        await self._flush_and_refresh(f"update {table}", [obj])
        await self._finish([(table, UPDATE, obj.id)])
        return obj

    async def delete(self, table: str, record_id: Any) -> bool:
        """
        Remove one row.

        Returns:
            True if a row was removed, False if it did not exist
        """
        self._writable(table)
        obj = await self.get(table, record_id)
        if obj is None:
            return False
        await self.db.delete(obj)
        await self._flush_and_refresh(f"delete {table}", [])
        await self._finish([(table, DELETE, record_id)])
        return True
