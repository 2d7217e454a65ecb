"""Reporting API endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import get_db
from tablemind.models.customer import Customer
from tablemind.models.reservation import Reservation
from tablemind.models.restaurant import Restaurant
from tablemind.models.table import DiningTable
from tablemind.repositories.base import TenantRepository
from tablemind.scheduling import reports
from tablemind.scheduling.config import ScheduleConfig
from tablemind.schemas.analytics import OverviewResponse, SegmentationResponse
from tablemind.api.auth import get_restaurant

router = APIRouter()


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    period: str = "month",
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Reservation totals, outcome rates and table utilization"""
    config = ScheduleConfig.for_restaurant(restaurant)
    if start_date is None or end_date is None:
        try:
            start_date, end_date = reports.period_range(period, config.now().date())
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")

    grid = config.grid
    lower, _ = grid.day_bounds(start_date)
    _, upper = grid.day_bounds(end_date)

    reservations = await TenantRepository(Reservation, db, restaurant.id).get_all(
        Reservation.start_time >= lower, Reservation.start_time < upper
    )
    table_count = await TenantRepository(DiningTable, db, restaurant.id).count()

    return OverviewResponse(
        **reports.overview(reservations, table_count, grid, start_date, end_date)
    )


@router.get("/segmentation", response_model=SegmentationResponse)
async def get_segmentation(
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Customer counts by risk level and visit band"""
    customers = await TenantRepository(Customer, db, restaurant.id).get_all()
    return SegmentationResponse(**reports.segmentation(customers))
