"""Pydantic schemas for request/response validation"""

from tablemind.schemas.auth import (
    Token,
    RefreshRequest,
    UserResponse,
)
from tablemind.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
    RestaurantSettingsUpdate,
    RestaurantSettingsResponse,
)
from tablemind.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
)
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
    TimelineResponse,
    NoShowSweepResult,
    NoShowSweepPreview,
)
from tablemind.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerDetail,
    CustomerInsights,
)
from tablemind.schemas.waitlist import (
    WaitlistCreate,
    WaitlistUpdate,
    WaitlistSeat,
    WaitlistResponse,
    WaitlistPurgeResult,
)
from tablemind.schemas.analytics import (
    OverviewResponse,
    SegmentationResponse,
)

__all__ = [
    "Token",
    "RefreshRequest",
    "UserResponse",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantResponse",
    "RestaurantSettingsUpdate",
    "RestaurantSettingsResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationMove",
    "ReservationTransition",
    "ReservationResponse",
    "ReservationDetail",
    "BookingResponse",
    "TransitionResponse",
    "AvailabilityResponse",
    "TimelineResponse",
    "NoShowSweepResult",
    "NoShowSweepPreview",
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerResponse",
    "CustomerDetail",
    "CustomerInsights",
    "WaitlistCreate",
    "WaitlistUpdate",
    "WaitlistSeat",
    "WaitlistResponse",
    "WaitlistPurgeResult",
    "OverviewResponse",
    "SegmentationResponse",
]
