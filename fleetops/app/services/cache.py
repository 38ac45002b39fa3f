"""
Caching service for trip listings.

Simple memory-based cache. Entries are dropped by TTL or, sooner, when
the change feed reports a write to the table they were read from.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fleetops.app.services.change_feed import ChangeEvent, ChangeFeed

_cache_store: Dict[str, dict] = {}


class CacheService:

    @staticmethod
    async def get(key: str) -> Optional[Any]:
        entry = _cache_store.get(key)
        if not entry:
            return None

        if datetime.utcnow() > entry["expires_at"]:
            del _cache_store[key]
            return None

        return entry["data"]

    @staticmethod
    async def set(key: str, data: Any, ttl_seconds: int = 300):
        _cache_store[key] = {
            "data": data,
            "expires_at": datetime.utcnow() + timedelta(seconds=ttl_seconds)
        }

    @staticmethod
    async def invalidate_prefix(prefix: str) -> int:
        """Drop every entry whose key starts with `prefix`; returns how many."""
        stale = [key for key in _cache_store if key.startswith(prefix)]
        for key in stale:
            del _cache_store[key]
        return len(stale)

    @staticmethod
    async def clear():
        _cache_store.clear()


def table_key(table: str, *parts: Any) -> str:
    """Cache key scoped to a table, e.g. table_key("trips", "list", "status=scheduled")."""
    return ":".join([table] + [str(part) for part in parts])


def bind_invalidation(feed: ChangeFeed, *tables: str) -> None:
    """Invalidate a table's cached reads whenever the feed reports a change to it."""
    async def invalidate(change: ChangeEvent):
        await CacheService.invalidate_prefix(f"{change.table}:")

    for table in tables:
        feed.subscribe(table, invalidate)
