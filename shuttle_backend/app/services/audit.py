"""
Audit logging service for schedule, override and trip changes.

Provides centralized logging for operators reviewing what happened.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from shuttle_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Schedules
    SCHEDULE_CREATED = "SCHEDULE_CREATED"
    SCHEDULE_UPDATED = "SCHEDULE_UPDATED"
    SCHEDULE_DELETED = "SCHEDULE_DELETED"
    
    # Overrides
    OVERRIDE_CREATED = "OVERRIDE_CREATED"
    OVERRIDE_APPROVED = "OVERRIDE_APPROVED"
    OVERRIDE_EXTENDED = "OVERRIDE_EXTENDED"
    OVERRIDE_SHORTENED = "OVERRIDE_SHORTENED"
    OVERRIDE_DELETED = "OVERRIDE_DELETED"
    
    # Generation
    TRIPS_GENERATED = "TRIPS_GENERATED"
    
    # Trip lifecycle
    TRIP_STARTED = "TRIP_STARTED"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    TRIP_CANCELLED = "TRIP_CANCELLED"
    
    # Crew permissions
    START_PERMISSION_GRANTED = "START_PERMISSION_GRANTED"
    START_PERMISSION_REVOKED = "START_PERMISSION_REVOKED"
    
    # Boarding
    PASSENGER_BOARDED = "PASSENGER_BOARDED"
    PASSENGER_ALIGHTED = "PASSENGER_ALIGHTED"
    PASSENGER_NO_SHOW = "PASSENGER_NO_SHOW"
    PASSENGER_RESET = "PASSENGER_RESET"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an event to the audit log.
    
    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action (None for system runs)
        actor_username: Username of actor
        entity: Kind of record acted upon ("trip", "schedule", ...)
        entity_id: ID of that record
        metadata: Additional context as JSON
    
    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        entity=entity,
        entity_id=entity_id,
        meta_data=metadata,
    )
    
    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)
    
    return audit_log


async def get_entity_history(
    db: AsyncSession,
    entity: str,
    entity_id: int,
    limit: int = 100
) -> List[AuditLog]:
    """
    Get audit history for one record, newest first.
    
    Args:
        db: Database session
        entity: Kind of record
        entity_id: ID of the record
        limit: Maximum number of logs to return
    
    Returns:
        List of AuditLog instances
    """
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.entity == entity, AuditLog.entity_id == entity_id)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .limit(limit)
    )
    return list(result.scalars().all())
