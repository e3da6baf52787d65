"""
Vehicle database model.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base


class Vehicle(Base):
    """A shuttle vehicle that schedules run with."""
    __tablename__ = "vehicles"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    plate_number = Column(String(20), unique=True, index=True, nullable=False)
    model_name = Column(String(100), nullable=True)
    capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    @property
    def is_available(self) -> bool:
        return self.is_active and self.deleted_at is None
    
    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.plate_number}', capacity={self.capacity})>"
