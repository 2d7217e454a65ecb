"""Reservation scheduling core"""

from tablemind.scheduling.errors import (
    SchedulingError,
    ValidationError,
    ConflictError,
    PastTimeError,
    NotFoundError,
    IllegalTransitionError,
    TableInUseError,
    StorageError,
)
from tablemind.scheduling.timeslots import SlotGrid, to_slot, to_timestamp
from tablemind.scheduling.availability import Availability, check_availability, overlaps
from tablemind.scheduling.config import ScheduleConfig, local_now
from tablemind.scheduling.service import SchedulingService, Booking
from tablemind.scheduling.sweep import sweep_no_shows, sweep_all, count_potential_no_shows
from tablemind.scheduling.waitlist import WaitlistQueue, estimate_wait

__all__ = [
    "SchedulingError",
    "ValidationError",
    "ConflictError",
    "PastTimeError",
    "NotFoundError",
    "IllegalTransitionError",
    "TableInUseError",
    "StorageError",
    "SlotGrid",
    "to_slot",
    "to_timestamp",
    "Availability",
    "check_availability",
    "overlaps",
    "ScheduleConfig",
    "local_now",
    "SchedulingService",
    "Booking",
    "sweep_no_shows",
    "sweep_all",
    "count_potential_no_shows",
    "WaitlistQueue",
    "estimate_wait",
]
