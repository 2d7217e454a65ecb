"""Restaurant schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class RestaurantCreate(BaseModel):
    """Create restaurant request"""
    name: str
    timezone: str = "America/New_York"
    address: Optional[str] = None
    phone: Optional[str] = None


class RestaurantUpdate(BaseModel):
    """Update restaurant request"""
    name: Optional[str] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None


class RestaurantResponse(BaseModel):
    """Restaurant response"""
    id: UUID
    name: str
    timezone: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RestaurantSettingsUpdate(BaseModel):
    """Update restaurant settings"""
    address: Optional[str] = None
    phone: Optional[str] = None
    day_start_hour: Optional[int] = None
    day_end_hour: Optional[int] = None
    slot_minutes: Optional[int] = None
    default_duration_minutes: Optional[int] = None
    no_show_grace_minutes: Optional[int] = None
    average_turnover_minutes: Optional[int] = None
    waitlist_max_party_size: Optional[int] = None
    max_waitlist_length: Optional[int] = None
    waitlist_priority_ordering: Optional[bool] = None


class RestaurantSettingsResponse(BaseModel):
    """Restaurant settings response"""
    id: UUID
    restaurant_id: UUID
    address: Optional[str]
    phone: Optional[str]
    day_start_hour: int
    day_end_hour: int
    slot_minutes: int
    default_duration_minutes: int
    no_show_grace_minutes: int
    average_turnover_minutes: int
    waitlist_max_party_size: int
    max_waitlist_length: int
    waitlist_priority_ordering: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
