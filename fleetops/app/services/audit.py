"""
Audit logging service for dispatch actions.

Every trip mutation leaves a row in audit_logs naming the operator, the
trip and the relevant details.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from fleetops.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    TRIP_CREATED = "TRIP_CREATED"
    RECURRING_TRIPS_CREATED = "RECURRING_TRIPS_CREATED"
    TRIP_UPDATED = "TRIP_UPDATED"
    TRIP_STATUS_CHANGED = "TRIP_STATUS_CHANGED"
    TRIP_DELETED = "TRIP_DELETED"
    TRIP_IMPORTED = "TRIP_IMPORTED"

    DRIVER_ASSIGNED = "DRIVER_ASSIGNED"
    ASSIGNMENT_RESPONDED = "ASSIGNMENT_RESPONDED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[str] = None,
    trip_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True
) -> AuditLog:
    """
    Log a dispatch event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor: Operator name, None for system actions
        trip_id: Trip the action concerned
        metadata: Additional context as JSON
        commit: Commit immediately; pass False to ride along an open transaction

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor=actor,
        action=action,
        trip_id=trip_id,
        meta_data=metadata
    )

    db.add(audit_log)
    if commit:
        await db.commit()
        await db.refresh(audit_log)
    else:
        await db.flush()

    return audit_log


async def get_trip_audit_trail(
    db: AsyncSession,
    trip_id: int,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Audit entries for one trip, most recent first.

    Args:
        db: Database session
        trip_id: Trip to get history for
        action: Filter by action type
        limit: Maximum number of records to return
    """
    query = select(AuditLog).where(AuditLog.trip_id == trip_id).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
