"""
Schedule database model.

A schedule is the recurring template ("08:00 Course A, Mon-Fri");
trips are the concrete, dated runs generated from it.
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum, JSON, Text
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base
from shuttle_backend.app.models.enums import ScheduleStatus, TimeSlot


class Schedule(Base):
    """
    Schedule model.
    
    ``days_of_week`` holds ISO weekdays (1=Monday ... 7=Sunday).
    ``valid_from`` / ``valid_to`` are optional inclusive bounds.
    Schedules are never physically removed; they are deactivated or
    soft-deleted through ``deleted_at``.
    """
    __tablename__ = "schedules"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(ScheduleStatus), default=ScheduleStatus.ACTIVE, nullable=False, index=True)
    
    # Departure
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    time_slot = Column(Enum(TimeSlot), nullable=False)
    
    # Recurrence
    days_of_week = Column(JSON, nullable=False, default=list)
    
    # Assignment
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)
    default_driver_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    default_attendant_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    
    # Validity window
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    def __repr__(self):
        return f"<Schedule(id={self.id}, name='{self.name}', days={self.days_of_week})>"
