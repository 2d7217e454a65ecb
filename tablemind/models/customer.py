"""Customer profile model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tablemind.database import Base


class Customer(Base):
    """Guest profile with visit statistics"""
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False)

    name = Column(String(255), nullable=False)
    phone = Column(String(50))
    # Digits-only copy of phone, unique per restaurant
    phone_digits = Column(String(30))
    email = Column(String(255))

    tags = Column(JSON, default=list, nullable=False)
    notes = Column(Text)

    # Statistics maintained by reservation lifecycle transitions
    total_visits = Column(Integer, default=0, nullable=False)
    no_show_count = Column(Integer, default=0, nullable=False)
    cancellation_count = Column(Integer, default=0, nullable=False)
    last_visit_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="customer")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "phone_digits", name="uq_customers_restaurant_phone"),
        Index("ix_customers_restaurant_name", "restaurant_id", "name"),
    )
