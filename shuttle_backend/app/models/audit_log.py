"""
Audit Log Database Model.

Tracks schedule, override and trip changes for operators.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.
    
    Events logged:
    - SCHEDULE_* changes
    - OVERRIDE_* changes
    - TRIPS_GENERATED runs
    - TRIP_* lifecycle and PASSENGER_* boarding transitions
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)
    
    # What action was performed, and on what
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True, index=True)
    
    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)
    
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity}:{self.entity_id})>"
