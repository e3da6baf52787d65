"""
Trip and TripPassenger database models.

A trip is one concrete run of a schedule on one date. It owns its
passenger roster.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, Enum, Text,
    Index, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shuttle_backend.app.db.session import Base
from shuttle_backend.app.models.enums import TripStatus


class Trip(Base):
    """
    Trip model.
    
    Created only by trip generation. At most one live (not soft-deleted)
    trip exists per (schedule_id, trip_date); the partial unique index
    below enforces it for concurrent generators.
    """
    __tablename__ = "trips"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey('schedules.id'), nullable=False, index=True)
    trip_date = Column(Date, nullable=False, index=True)
    
    status = Column(Enum(TripStatus), default=TripStatus.PENDING, nullable=False, index=True)
    
    # Crew and vehicle resolved for this date
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False)
    assigned_driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    assigned_attendant_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    driver_assignment_id = Column(Integer, ForeignKey('driver_assignments.id'), nullable=True)
    
    # Execution record
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    started_by = Column(String(50), nullable=True)  # "driver:12" / "attendant:7"
    
    start_latitude = Column(Float, nullable=True)
    start_longitude = Column(Float, nullable=True)
    start_recorded_at = Column(DateTime(timezone=True), nullable=True)
    end_latitude = Column(Float, nullable=True)
    end_longitude = Column(Float, nullable=True)
    end_recorded_at = Column(DateTime(timezone=True), nullable=True)
    
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    
    __mapper_args__ = {"eager_defaults": True}
    
    passengers = relationship(
        "TripPassenger",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripPassenger.id",
        lazy="selectin",
    )
    
    __table_args__ = (
        Index(
            'uq_trips_schedule_date_live', 'schedule_id', 'trip_date',
            unique=True,
            postgresql_where=text('deleted_at IS NULL'),
            sqlite_where=text('deleted_at IS NULL'),
        ),
    )
    
    def __repr__(self):
        return f"<Trip(id={self.id}, schedule_id={self.schedule_id}, date={self.trip_date}, status='{self.status.value}')>"


class TripPassenger(Base):
    """
    Per-passenger boarding record within one trip.
    
    Boarded and no-show are mutually exclusive; alighted implies boarded.
    """
    __tablename__ = "trip_passengers"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete="CASCADE"), nullable=False, index=True)
    passenger_id = Column(Integer, ForeignKey('passengers.id'), nullable=False, index=True)
    stop_id = Column(Integer, ForeignKey('stops.id'), nullable=True)
    
    is_boarded = Column(Boolean, default=False, nullable=False)
    boarded_at = Column(DateTime(timezone=True), nullable=True)
    is_alighted = Column(Boolean, default=False, nullable=False)
    alighted_at = Column(DateTime(timezone=True), nullable=True)
    
    no_show_reason = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    trip = relationship("Trip", back_populates="passengers")
    
    __mapper_args__ = {"eager_defaults": True}
    
    __table_args__ = (
        UniqueConstraint('trip_id', 'passenger_id', name='uq_trip_passengers_trip_passenger'),
    )
    
    def __repr__(self):
        return f"<TripPassenger(trip_id={self.trip_id}, passenger_id={self.passenger_id}, boarded={self.is_boarded})>"
