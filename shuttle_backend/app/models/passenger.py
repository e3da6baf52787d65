"""
Passenger database model.

Passengers (children, day-care patients, ...) are assigned to one route and
one boarding stop. Trip rosters are seeded from these assignments.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base


class Passenger(Base):
    """Passenger model."""
    __tablename__ = "passengers"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    guardian_phone = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)  # allergies, medication, ...
    
    # Route assignment
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=True, index=True)
    stop_id = Column(Integer, ForeignKey('stops.id'), nullable=True)
    
    is_active = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    def __repr__(self):
        return f"<Passenger(id={self.id}, route_id={self.route_id}, stop_id={self.stop_id})>"
