"""Reporting schemas"""

from datetime import date
from typing import Dict, Optional
from pydantic import BaseModel


class OverviewResponse(BaseModel):
    """Reservation totals and rates over a date range"""
    start_date: date
    end_date: date
    total_reservations: int
    total_guests: int
    average_party_size: Optional[float]
    finished: int
    cancelled: int
    no_shows: int
    completion_rate: float
    no_show_rate: float
    cancellation_rate: float
    table_utilization: float


class SegmentationResponse(BaseModel):
    """Customer counts by risk level and visit band"""
    total_customers: int
    by_risk: Dict[str, int]
    by_visits: Dict[str, int]
