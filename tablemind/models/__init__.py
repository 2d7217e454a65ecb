"""Database models"""

from tablemind.models.restaurant import Restaurant, RestaurantSettings
from tablemind.models.user import User, UserRole
from tablemind.models.table import DiningTable, TABLE_SHAPES
from tablemind.models.customer import Customer
from tablemind.models.reservation import Reservation, ReservationStatus, ACTIVE_STATUSES
from tablemind.models.waitlist import (
    WaitlistEntry,
    WaitlistStatus,
    WaitlistPriority,
    ACTIVE_WAITLIST_STATUSES,
)
from tablemind.models.audit import AuditLog

__all__ = [
    "Restaurant",
    "RestaurantSettings",
    "User",
    "UserRole",
    "DiningTable",
    "TABLE_SHAPES",
    "Customer",
    "Reservation",
    "ReservationStatus",
    "ACTIVE_STATUSES",
    "WaitlistEntry",
    "WaitlistStatus",
    "WaitlistPriority",
    "ACTIVE_WAITLIST_STATUSES",
    "AuditLog",
]
