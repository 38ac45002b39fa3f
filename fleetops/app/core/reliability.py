"""
Reliability utilities for the store boundary.

Every store round-trip is bounded by a timeout; expiry is reported as a
retryable StoreTimeoutError instead of hanging the request.
"""

import asyncio
import logging
import time
from typing import Awaitable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from fleetops.app.core.config import settings
from fleetops.app.core.exceptions import StoreError, StoreTimeoutError

logger = logging.getLogger("fleetops.store")

T = TypeVar("T")


async def call_with_timeout(
    operation: str,
    awaitable: Awaitable[T],
    timeout_seconds: float = None
) -> T:
    """
    Await a store call under a timeout, translating driver errors.

    Args:
        operation: Short name used in logs and error details (e.g. "insert trips")
        awaitable: The pending store call
        timeout_seconds: Override for settings.store_timeout_seconds

    Returns:
        Whatever the awaitable returns

    Raises:
        StoreTimeoutError: If the call does not finish in time
        StoreError: If the database layer raised
    """
    timeout = timeout_seconds if timeout_seconds is not None else settings.store_timeout_seconds
    started = time.monotonic()
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Store call timed out", extra={"operation": operation, "timeout_seconds": timeout})
        raise StoreTimeoutError(operation, timeout)
    except SQLAlchemyError as exc:
        logger.error(
            "Store call failed",
            extra={
                "operation": operation,
                "error": type(exc).__name__,
                "duration_ms": round((time.monotonic() - started) * 1000, 2)
            }
        )
        raise StoreError(
            message=f"Store operation '{operation}' failed",
            details={"operation": operation, "error": str(getattr(exc, "orig", exc))}
        ) from exc
