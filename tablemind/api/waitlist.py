"""Waitlist API endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import get_db
from tablemind.models.restaurant import Restaurant
from tablemind.models.user import User
from tablemind.scheduling.waitlist import WaitlistQueue
from tablemind.schemas.waitlist import (
    WaitlistCreate,
    WaitlistUpdate,
    WaitlistSeat,
    WaitlistResponse,
    WaitlistPurgeResult,
)
from tablemind.api.auth import get_current_active_user, get_restaurant

router = APIRouter()


async def get_queue(
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> WaitlistQueue:
    return WaitlistQueue(db, restaurant, actor=current_user)


@router.get("", response_model=List[WaitlistResponse])
async def list_waitlist(
    status: Optional[str] = None,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Active entries in queue order, or every entry with a given status"""
    if status is None:
        return await queue.list_active()
    return await queue.list(status)


@router.post("", response_model=WaitlistResponse, status_code=201)
async def add_to_waitlist(
    entry_data: WaitlistCreate,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Add a walk-in party to the back of the queue"""
    return await queue.enqueue(**entry_data.model_dump())


@router.post("/recalculate", response_model=List[WaitlistResponse])
async def recalculate_waitlist(queue: WaitlistQueue = Depends(get_queue)):
    """Renumber positions and refresh wait estimates"""
    return await queue.recalculate()


@router.delete("", response_model=WaitlistPurgeResult)
async def purge_waitlist(
    before: Optional[datetime] = None,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Remove closed entries created before a cutoff"""
    return WaitlistPurgeResult(removed=await queue.purge(before))


@router.get("/{entry_id}", response_model=WaitlistResponse)
async def get_waitlist_entry(
    entry_id: UUID,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Get a waitlist entry"""
    return await queue.get(entry_id)


@router.put("/{entry_id}", response_model=WaitlistResponse)
async def update_waitlist_entry(
    entry_id: UUID,
    entry_data: WaitlistUpdate,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Edit an entry or move it through arrived/notified/left"""
    return await queue.update(entry_id, **entry_data.model_dump(exclude_unset=True))


@router.post("/{entry_id}/seat", response_model=WaitlistResponse)
async def seat_waitlist_entry(
    entry_id: UUID,
    seat_data: WaitlistSeat,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Seat the party now at the given table"""
    return await queue.seat(entry_id, seat_data.table_id, seat_data.duration_minutes)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_waitlist_entry(
    entry_id: UUID,
    queue: WaitlistQueue = Depends(get_queue),
):
    """Remove an entry; the parties behind it move up"""
    await queue.remove(entry_id)
