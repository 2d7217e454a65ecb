"""Reservation schemas"""

from datetime import date, datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel


class ReservationCreate(BaseModel):
    """Create reservation request; end_time or duration_minutes, not both"""
    table_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    customer_name: str
    customer_phone: Optional[str] = None
    party_size: int
    notes: Optional[str] = None
    idempotency_key: Optional[str] = None


class ReservationUpdate(BaseModel):
    """Update reservation request"""
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    party_size: Optional[int] = None
    notes: Optional[str] = None
    table_id: Optional[UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[str] = None


class ReservationMove(BaseModel):
    """Move a reservation to another table and/or time"""
    table_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: Optional[str] = None


class ReservationTransition(BaseModel):
    """Front-of-house action: arrive, seat, finish, no_show, cancel"""
    action: str
    notes: Optional[str] = None
    arrival_time: Optional[datetime] = None


class CustomerSummary(BaseModel):
    id: UUID
    name: str
    phone: Optional[str]
    tags: List[str]
    total_visits: int
    no_show_count: int

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: UUID
    restaurant_id: UUID
    table_id: Optional[UUID]
    customer_id: Optional[UUID]
    customer_name: str
    customer_phone: Optional[str]
    party_size: int
    start_time: datetime
    end_time: datetime
    status: str
    notes: Optional[str]
    actual_arrival_time: Optional[datetime]
    minutes_early_late: Optional[int]
    seated_at: Optional[datetime]
    finished_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    no_show_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationDetail(ReservationResponse):
    """Reservation with its linked customer (only where the customer is loaded)"""
    customer: Optional[CustomerSummary] = None


class BookingResponse(BaseModel):
    """Result of create, update or move"""
    reservation: ReservationResponse
    warnings: List[str] = []
    replayed: bool = False


class TransitionResponse(BaseModel):
    reservation: ReservationResponse
    previous_status: str
    status: str
    changed: bool
    message: str


class ConflictingReservation(BaseModel):
    id: UUID
    customer_name: str
    start_time: datetime
    end_time: datetime
    status: str

    class Config:
        from_attributes = True


class TableAvailabilityResponse(BaseModel):
    table_id: UUID
    table_name: str
    capacity: int
    available: bool
    suitable: bool
    conflict: Optional[ConflictingReservation] = None


class AvailabilityResponse(BaseModel):
    """Advisory availability of every table for one slot range"""
    business_date: date
    start_slot: int
    duration_slots: int
    start_time: datetime
    end_time: datetime
    tables: List[TableAvailabilityResponse]


class TimelineTable(BaseModel):
    id: UUID
    name: str
    capacity: int
    shape: str

    class Config:
        from_attributes = True


class TimelineReservation(ReservationDetail):
    start_slot: int
    duration_slots: int


class TimelineResponse(BaseModel):
    """Everything the floor view needs to draw one business day"""
    business_date: date
    slot_minutes: int
    labels: List[str]
    tables: List[TimelineTable]
    reservations: List[TimelineReservation]


class NoShowSweepResult(BaseModel):
    count: int


class NoShowSweepPreview(BaseModel):
    potential_no_shows: int
