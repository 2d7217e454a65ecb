"""Dining table model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tablemind.database import Base


TABLE_SHAPES = ("round", "square", "rectangle", "booth")


class DiningTable(Base):
    """A bookable table on the restaurant floor"""
    __tablename__ = "tables"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False)

    name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)
    shape = Column(String(20), default="square", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="tables")
    reservations = relationship("Reservation", back_populates="table")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_tables_restaurant_name"),
        CheckConstraint("capacity > 0", name="ck_tables_capacity_positive"),
    )
