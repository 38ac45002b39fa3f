"""
Table change feed.

Fires after every committed insert/update/delete, keyed by table name.
Consumers only use it to invalidate caches, so events carry the table,
the kind of change and the affected id, nothing more.

Events go to in-process subscribers and are published on Redis
(`<change_channel_prefix><table>`) for external listeners. Nothing here
subscribes to that channel, so each process invalidates only its own
cache, from its own writes.
"""

import inspect
import json
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from pydantic import BaseModel
from redis.exceptions import RedisError

from fleetops.app.core.config import settings

logger = logging.getLogger("fleetops.change_feed")

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


class ChangeEvent(BaseModel):
    table: str
    event: str
    record_id: Any = None


class ChangeFeed:

    def __init__(self, redis=None, channel_prefix: str = None):
        self.redis = redis
        self.channel_prefix = channel_prefix or settings.change_channel_prefix
        self._subscribers: Dict[str, List[Callable]] = defaultdict(list)

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], Any]) -> Callable[[], None]:
        """
        Register a callback (sync or async) for changes to `table`.

        Returns:
            A function that removes the subscription
        """
        self._subscribers[table].append(callback)

        def unsubscribe():
            if callback in self._subscribers[table]:
                self._subscribers[table].remove(callback)

        return unsubscribe

    def channel(self, table: str) -> str:
        return f"{self.channel_prefix}{table}"

    async def publish(self, table: str, event: str, record_id: Any = None) -> ChangeEvent:
        change = ChangeEvent(table=table, event=event, record_id=record_id)

        for callback in list(self._subscribers[table]):
            result = callback(change)
            if inspect.isawaitable(result):
                await result

        if self.redis is not None:
            try:
                await self.redis.publish(self.channel(table), json.dumps(change.model_dump(), default=str))
            except RedisError as exc:
                # Remote listeners miss one event; local state is already committed
                logger.warning("Change event not published to Redis", extra={"table": table, "error": str(exc)})

        return change
