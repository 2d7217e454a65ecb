"""Table availability checks.

Everything here is pure: callers pass in the reservations they already
hold (from the database inside a locked transaction, or from a client-side
cache while dragging) and get an answer without any I/O.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from tablemind.models.reservation import ACTIVE_STATUSES
from tablemind.scheduling.timeslots import SlotGrid


@dataclass(frozen=True)
class Availability:
    available: bool
    conflict: Optional[Any] = None


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap; touching intervals do not overlap"""
    return start_a < end_b and end_a > start_b


def find_conflict(
    table_id,
    start: datetime,
    end: datetime,
    reservations: Iterable[Any],
    exclude_reservation_id=None,
) -> Optional[Any]:
    """First active reservation on ``table_id`` overlapping [start, end)"""
    for reservation in reservations:
        if reservation.table_id != table_id:
            continue
        if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
            continue
        if reservation.status not in ACTIVE_STATUSES:
            continue
        if overlaps(start, end, reservation.start_time, reservation.end_time):
            return reservation
    return None


def check_interval(
    table_id,
    start: datetime,
    end: datetime,
    reservations: Iterable[Any],
    exclude_reservation_id=None,
) -> Availability:
    conflict = find_conflict(table_id, start, end, reservations, exclude_reservation_id)
    return Availability(available=conflict is None, conflict=conflict)


def check_availability(
    table_id,
    start_slot: int,
    duration_slots: int,
    reservations: Iterable[Any],
    grid: SlotGrid,
    business_date: date,
    exclude_reservation_id=None,
) -> Availability:
    """Slot-based availability of ``table_id`` for a candidate booking"""
    start = grid.to_timestamp(start_slot, business_date)
    end = grid.to_timestamp(start_slot + duration_slots, business_date)
    return check_interval(table_id, start, end, reservations, exclude_reservation_id)
