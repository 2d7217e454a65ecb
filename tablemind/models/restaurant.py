"""Restaurant (tenant) models"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tablemind.database import Base


class Restaurant(Base):
    """Restaurant tenant; the unit of data isolation"""
    __tablename__ = "restaurants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    timezone = Column(String(50), default="America/New_York", nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    settings = relationship(
        "RestaurantSettings", back_populates="restaurant", uselist=False, lazy="selectin"
    )
    tables = relationship("DiningTable", back_populates="restaurant")
    users = relationship("User", back_populates="restaurant")


class RestaurantSettings(Base):
    """Per-restaurant scheduling and waitlist settings"""
    __tablename__ = "restaurant_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(
        UUID(as_uuid=True), ForeignKey("restaurants.id"), unique=True, nullable=False
    )

    # Business information
    address = Column(Text)
    phone = Column(String(20))

    # Timeline axis
    day_start_hour = Column(Integer, default=12, nullable=False)
    day_end_hour = Column(Integer, default=0, nullable=False)
    slot_minutes = Column(Integer, default=15, nullable=False)
    default_duration_minutes = Column(Integer, default=90, nullable=False)

    # Lifecycle
    no_show_grace_minutes = Column(Integer, default=120, nullable=False)

    # Waitlist
    average_turnover_minutes = Column(Integer, default=25, nullable=False)
    waitlist_max_party_size = Column(Integer, default=20, nullable=False)
    max_waitlist_length = Column(Integer, default=50, nullable=False)
    waitlist_priority_ordering = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="settings")
