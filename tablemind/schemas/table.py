"""Dining table schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class TableCreate(BaseModel):
    """Create table request"""
    name: str
    capacity: int
    shape: str = "square"


class TableUpdate(BaseModel):
    """Update table request"""
    name: Optional[str] = None
    capacity: Optional[int] = None
    shape: Optional[str] = None


class TableResponse(BaseModel):
    """Table response"""
    id: UUID
    restaurant_id: UUID
    name: str
    capacity: int
    shape: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
