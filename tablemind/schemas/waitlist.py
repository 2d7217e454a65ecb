"""Waitlist schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel


class WaitlistCreate(BaseModel):
    """Add a walk-in party"""
    customer_name: str
    party_size: int
    phone: Optional[str] = None
    notes: Optional[str] = None
    preferences: List[str] = []
    priority: str = "normal"


class WaitlistUpdate(BaseModel):
    """Update a waitlist entry"""
    customer_name: Optional[str] = None
    party_size: Optional[int] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    preferences: Optional[List[str]] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class WaitlistSeat(BaseModel):
    """Seat a waiting party at a table"""
    table_id: UUID
    duration_minutes: Optional[int] = None


class WaitlistResponse(BaseModel):
    """Waitlist entry response"""
    id: UUID
    restaurant_id: UUID
    customer_name: str
    phone: Optional[str]
    party_size: int
    notes: Optional[str]
    preferences: List[str]
    status: str
    priority: str
    position: int
    estimated_wait_minutes: Optional[int]
    actual_wait_minutes: Optional[int]
    table_id: Optional[UUID]
    reservation_id: Optional[UUID]
    arrived_at: Optional[datetime]
    notified_at: Optional[datetime]
    seated_at: Optional[datetime]
    left_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WaitlistPurgeResult(BaseModel):
    removed: int
