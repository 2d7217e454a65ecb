"""Customer schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel

from tablemind.schemas.reservation import ReservationResponse


class CustomerCreate(BaseModel):
    """Create customer request"""
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: List[str] = []
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    """Update customer request"""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class CustomerResponse(BaseModel):
    """Customer response"""
    id: UUID
    restaurant_id: UUID
    name: str
    phone: Optional[str]
    email: Optional[str]
    tags: List[str]
    notes: Optional[str]
    total_visits: int
    no_show_count: int
    cancellation_count: int
    last_visit_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerDetail(CustomerResponse):
    """Customer with visit history, newest first"""
    reservations: List[ReservationResponse] = []


class SuggestedTagResponse(BaseModel):
    tag: str
    description: str
    criteria: str
    confidence: int

    class Config:
        from_attributes = True


class CustomerInsights(BaseModel):
    customer_id: UUID
    reliability_score: int
    risk_level: str
    suggested_tags: List[SuggestedTagResponse]
    insights: List[str]
