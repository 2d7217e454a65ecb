"""Reservation management API endpoints"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import get_db
from tablemind.models.restaurant import Restaurant
from tablemind.models.user import User
from tablemind.scheduling.service import SchedulingService
from tablemind.scheduling.sweep import count_potential_no_shows, sweep_no_shows
from tablemind.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationMove,
    ReservationTransition,
    ReservationResponse,
    ReservationDetail,
    BookingResponse,
    TransitionResponse,
    AvailabilityResponse,
    TableAvailabilityResponse,
    ConflictingReservation,
    TimelineResponse,
    TimelineTable,
    TimelineReservation,
    NoShowSweepResult,
    NoShowSweepPreview,
)
from tablemind.api.auth import get_current_active_user, get_restaurant

router = APIRouter()


async def get_scheduler(
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> SchedulingService:
    return SchedulingService(db, restaurant, actor=current_user)


def _booking(booking) -> BookingResponse:
    return BookingResponse(
        reservation=ReservationResponse.model_validate(booking.reservation),
        warnings=booking.warnings,
        replayed=booking.replayed,
    )


def _transition(outcome) -> TransitionResponse:
    return TransitionResponse(
        reservation=ReservationResponse.model_validate(outcome.reservation),
        previous_status=outcome.transition.previous,
        status=outcome.transition.current,
        changed=outcome.transition.changed,
        message=outcome.message,
    )


@router.get("", response_model=List[ReservationDetail])
async def list_reservations(
    date: date,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Reservations starting on a business date, ordered by start time"""
    return await scheduler.list_for_day(date)


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    date: date,
    start_slot: int = Query(..., ge=0),
    duration_slots: int = Query(..., ge=1),
    party_size: Optional[int] = Query(None, ge=1),
    exclude_reservation_id: Optional[UUID] = None,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Advisory per-table availability for a slot range"""
    results = await scheduler.availability(
        date, start_slot, duration_slots, party_size, exclude_reservation_id
    )
    return AvailabilityResponse(
        business_date=date,
        start_slot=start_slot,
        duration_slots=duration_slots,
        start_time=scheduler.grid.to_timestamp(start_slot, date),
        end_time=scheduler.grid.to_timestamp(start_slot + duration_slots, date),
        tables=[
            TableAvailabilityResponse(
                table_id=item.table.id,
                table_name=item.table.name,
                capacity=item.table.capacity,
                available=item.availability.available,
                suitable=item.suitable,
                conflict=(
                    ConflictingReservation.model_validate(item.availability.conflict)
                    if item.availability.conflict is not None else None
                ),
            )
            for item in results
        ],
    )


@router.get("/timeline", response_model=TimelineResponse)
async def get_timeline(
    date: date,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Tables, slot labels and the day's reservations placed on the axis"""
    timeline = await scheduler.timeline(date)
    return TimelineResponse(
        business_date=timeline.business_date,
        slot_minutes=timeline.slot_minutes,
        labels=timeline.labels,
        tables=[TimelineTable.model_validate(table) for table in timeline.tables],
        reservations=[
            TimelineReservation(
                **ReservationDetail.model_validate(p.reservation).model_dump(),
                start_slot=p.start_slot,
                duration_slots=p.duration_slots,
            )
            for p in timeline.placements
        ],
    )


@router.get("/no-show-sweep", response_model=NoShowSweepPreview)
async def preview_no_show_sweep(
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """How many reservations a sweep would mark right now"""
    return NoShowSweepPreview(potential_no_shows=await count_potential_no_shows(db, restaurant))


@router.post("/no-show-sweep", response_model=NoShowSweepResult)
async def run_no_show_sweep(
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Mark overdue booked/confirmed reservations as no-shows"""
    return NoShowSweepResult(count=await sweep_no_shows(db, restaurant))


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    response: Response,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Create a new reservation"""
    booking = await scheduler.create(
        reservation_data.table_id,
        reservation_data.start_time,
        customer_name=reservation_data.customer_name,
        party_size=reservation_data.party_size,
        end_time=reservation_data.end_time,
        duration_minutes=reservation_data.duration_minutes,
        customer_phone=reservation_data.customer_phone,
        notes=reservation_data.notes,
        idempotency_key=reservation_data.idempotency_key,
    )
    if booking.replayed:
        response.status_code = status.HTTP_200_OK
    return _booking(booking)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Get reservation details"""
    return await scheduler.get(reservation_id)


@router.patch("/{reservation_id}", response_model=BookingResponse)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Edit a reservation; table/time changes follow move rules.

    A ``status`` in the body is applied in the same transaction as the edits.
    """
    changes = reservation_data.model_dump(exclude_unset=True)
    booking = await scheduler.update(reservation_id, **changes)
    return _booking(booking)


@router.post("/{reservation_id}/move", response_model=BookingResponse)
async def move_reservation(
    reservation_id: UUID,
    move_data: ReservationMove,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Move to another table and/or time; all or nothing"""
    booking = await scheduler.move(
        reservation_id,
        move_data.table_id,
        move_data.start_time,
        move_data.end_time,
        move_data.notes,
    )
    return _booking(booking)


@router.post("/{reservation_id}/transition", response_model=TransitionResponse)
async def transition_reservation(
    reservation_id: UUID,
    transition_data: ReservationTransition,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Arrive, seat, finish, no-show or cancel"""
    outcome = await scheduler.perform(
        reservation_id,
        transition_data.action,
        notes=transition_data.notes,
        arrival_time=transition_data.arrival_time,
    )
    return _transition(outcome)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: UUID,
    scheduler: SchedulingService = Depends(get_scheduler),
):
    """Delete a reservation outright; customer statistics are untouched"""
    await scheduler.delete(reservation_id)
