"""
Audit Log Database Model.

Tracks every dispatch mutation (trip created, status changed, driver
assigned, ...) with the operator who made it.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from fleetops.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for dispatch actions.

    The operator is identified only by name, as supplied by the caller;
    identity itself is managed outside this service.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor = Column(String(100), nullable=True, index=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which trip it concerned, when there is one
    trip_id = Column(Integer, nullable=True, index=True)

    # Additional context
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor}, trip_id={self.trip_id})>"
