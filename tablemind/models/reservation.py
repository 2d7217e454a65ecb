"""Reservation model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, Text,
    Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tablemind.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    SEATED = "seated"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that occupy a table and take part in conflict checks
ACTIVE_STATUSES = frozenset({
    ReservationStatus.BOOKED.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.SEATED.value,
})


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False)
    table_id = Column(UUID(as_uuid=True), ForeignKey("tables.id", ondelete="SET NULL"))
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL"))

    # Guest information (denormalized so walk-ins without a profile still display)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50))

    # Booking; wall-clock times in the restaurant's local timezone
    party_size = Column(Integer, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    status = Column(String(20), default=ReservationStatus.BOOKED.value, nullable=False)
    notes = Column(Text)

    # Set once the customer's visit counter has been incremented
    visit_counted = Column(Boolean, default=False, nullable=False)

    # Client-supplied key making create safe to retry
    idempotency_key = Column(String(100))

    # Visit tracking
    actual_arrival_time = Column(DateTime)
    minutes_early_late = Column(Integer)
    seated_at = Column(DateTime)
    finished_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    no_show_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    table = relationship("DiningTable", back_populates="reservations")
    customer = relationship("Customer", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_table_start", "table_id", "start_time"),
        Index("ix_reservations_restaurant_start", "restaurant_id", "start_time"),
        Index("ix_reservations_status_start", "status", "start_time"),
        UniqueConstraint("restaurant_id", "idempotency_key", name="uq_reservations_idempotency_key"),
        CheckConstraint("party_size >= 1", name="ck_reservations_party_size_positive"),
        CheckConstraint("end_time > start_time", name="ck_reservations_interval"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
