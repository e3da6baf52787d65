"""
Driver assignment (override) database model.

Substitutes the driver of a schedule for an inclusive date range, e.g.
while the default driver is on leave. Optionally substitutes the attendant
as well.
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base


class DriverAssignment(Base):
    """DriverAssignment model."""
    __tablename__ = "driver_assignments"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey('schedules.id'), nullable=False, index=True)
    
    # Substitutes
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    attendant_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    
    # Inclusive range
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    
    reason = Column(String(255), nullable=False)
    
    # Approval (optional)
    approved_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    __table_args__ = (
        CheckConstraint('start_date <= end_date', name='ck_driver_assignments_range'),
    )
    
    def __repr__(self):
        return (
            f"<DriverAssignment(id={self.id}, schedule_id={self.schedule_id}, driver_id={self.driver_id}, "
            f"{self.start_date}..{self.end_date})>"
        )
