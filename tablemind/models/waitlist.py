"""Walk-in waitlist model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from tablemind.database import Base


class WaitlistStatus(str, enum.Enum):
    WAITING = "waiting"
    ARRIVED = "arrived"
    NOTIFIED = "notified"
    SEATED = "seated"
    LEFT = "left"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WaitlistPriority(str, enum.Enum):
    NORMAL = "normal"
    VIP = "vip"
    URGENT = "urgent"


# Entries that still hold a place in the queue
ACTIVE_WAITLIST_STATUSES = frozenset({
    WaitlistStatus.WAITING.value,
    WaitlistStatus.ARRIVED.value,
    WaitlistStatus.NOTIFIED.value,
})


class WaitlistEntry(Base):
    """A walk-in party waiting for a table"""
    __tablename__ = "waitlist"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False)

    customer_name = Column(String(255), nullable=False)
    phone = Column(String(50))
    party_size = Column(Integer, nullable=False)
    notes = Column(Text)
    preferences = Column(JSON, default=list, nullable=False)

    status = Column(String(20), default=WaitlistStatus.WAITING.value, nullable=False)
    priority = Column(String(20), default=WaitlistPriority.NORMAL.value, nullable=False)
    position = Column(Integer, nullable=False)
    estimated_wait_minutes = Column(Integer)
    actual_wait_minutes = Column(Integer)

    # Set when the party is seated from the queue
    table_id = Column(UUID(as_uuid=True), ForeignKey("tables.id", ondelete="SET NULL"))
    reservation_id = Column(UUID(as_uuid=True), ForeignKey("reservations.id", ondelete="SET NULL"))

    arrived_at = Column(DateTime)
    notified_at = Column(DateTime)
    seated_at = Column(DateTime)
    left_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_waitlist_restaurant_status", "restaurant_id", "status"),
        Index("ix_waitlist_restaurant_position", "restaurant_id", "position"),
        CheckConstraint("party_size >= 1", name="ck_waitlist_party_size_positive"),
    )
