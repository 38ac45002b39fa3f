"""
Request dependencies for FastAPI.

Every dispatch route works through a DispatchCoordinator bound to the
request's database session and to the process-wide change feed.
"""

from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.redis_client import redis_client
from fleetops.app.db.session import get_db
from fleetops.app.domain.dispatch.coordinator import DispatchCoordinator
from fleetops.app.services.change_feed import ChangeFeed
from fleetops.app.services.record_store import RecordStore

# One feed per process so cache invalidation subscribers see every write
change_feed = ChangeFeed(redis=redis_client)


async def get_operator(x_operator: Optional[str] = Header(None)) -> Optional[str]:
    """Operator name from the X-Operator header; recorded on audit entries."""
    if x_operator is None:
        return None
    return x_operator.strip() or None


async def get_coordinator(
    db: AsyncSession = Depends(get_db),
    operator: Optional[str] = Depends(get_operator)
) -> DispatchCoordinator:
    return DispatchCoordinator(RecordStore(db, feed=change_feed), actor=operator)
