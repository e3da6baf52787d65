"""
Route and Stop database models.

A route is a fixed course ("Course A"); stops are visited in sequence order.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base


class Route(Base):
    """Route model."""
    __tablename__ = "routes"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    estimated_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    stops = relationship("Stop", back_populates="route", order_by="Stop.sequence", lazy="selectin")
    
    def __repr__(self):
        return f"<Route(id={self.id}, name='{self.name}')>"


class Stop(Base):
    """
    Stop model.
    
    ``sequence`` starts at 1; ``estimated_arrival_offset`` is minutes after departure.
    """
    __tablename__ = "stops"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    address = Column(String(500), nullable=True)
    sequence = Column(Integer, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    estimated_arrival_offset = Column(Integer, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    route = relationship("Route", back_populates="stops")
    
    def __repr__(self):
        return f"<Stop(id={self.id}, route_id={self.route_id}, seq={self.sequence})>"
