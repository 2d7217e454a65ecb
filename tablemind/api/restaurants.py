"""Restaurant management API endpoints"""

from typing import List
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import get_db
from tablemind.models.restaurant import Restaurant, RestaurantSettings
from tablemind.models.user import User, UserRole
from tablemind.scheduling.errors import ValidationError
from tablemind.scheduling.timeslots import SlotGrid
from tablemind.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
    RestaurantSettingsUpdate,
    RestaurantSettingsResponse,
)
from tablemind.api.auth import get_current_active_user, require_role, verify_restaurant_access

router = APIRouter()


def _check_timezone(name: str) -> None:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}", ["timezone"])


async def _load(db: AsyncSession, restaurant_id: UUID) -> Restaurant:
    result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
    restaurant = result.scalar_one_or_none()
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


@router.get("", response_model=List[RestaurantResponse])
async def list_restaurants(
    skip: int = 0,
    limit: int = 100,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List all restaurants (SuperAdmin only)"""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.is_active == True)
        .order_by(Restaurant.name)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a new restaurant with default settings (SuperAdmin only)"""
    _check_timezone(restaurant_data.timezone)

    restaurant = Restaurant(
        name=restaurant_data.name,
        timezone=restaurant_data.timezone,
        settings=RestaurantSettings(
            address=restaurant_data.address,
            phone=restaurant_data.phone,
        ),
    )
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)

    return restaurant


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant_details(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get restaurant details"""
    await verify_restaurant_access(restaurant_id, current_user)
    return await _load(db, restaurant_id)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: UUID,
    restaurant_data: RestaurantUpdate,
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Update restaurant"""
    await verify_restaurant_access(restaurant_id, current_user)
    restaurant = await _load(db, restaurant_id)

    changes = restaurant_data.model_dump(exclude_unset=True)
    if changes.get("timezone"):
        _check_timezone(changes["timezone"])
    for field, value in changes.items():
        setattr(restaurant, field, value)

    await db.commit()
    await db.refresh(restaurant)

    return restaurant


@router.delete("/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_restaurant(
    restaurant_id: UUID,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete restaurant (soft delete - SuperAdmin only)"""
    restaurant = await _load(db, restaurant_id)
    restaurant.is_active = False
    await db.commit()


async def _load_settings(db: AsyncSession, restaurant_id: UUID) -> RestaurantSettings:
    result = await db.execute(
        select(RestaurantSettings).where(RestaurantSettings.restaurant_id == restaurant_id)
    )
    settings = result.scalar_one_or_none()
    if not settings:
        raise HTTPException(status_code=404, detail="Settings not found")
    return settings


@router.get("/{restaurant_id}/settings", response_model=RestaurantSettingsResponse)
async def get_restaurant_settings(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Get restaurant settings"""
    await verify_restaurant_access(restaurant_id, current_user)
    return await _load_settings(db, restaurant_id)


@router.put("/{restaurant_id}/settings", response_model=RestaurantSettingsResponse)
async def update_restaurant_settings(
    restaurant_id: UUID,
    settings_data: RestaurantSettingsUpdate,
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Update restaurant settings"""
    await verify_restaurant_access(restaurant_id, current_user)
    settings = await _load_settings(db, restaurant_id)

    changes = settings_data.model_dump(exclude_unset=True)
    merged = {
        "day_start_hour": changes.get("day_start_hour", settings.day_start_hour),
        "day_end_hour": changes.get("day_end_hour", settings.day_end_hour),
        "slot_minutes": changes.get("slot_minutes", settings.slot_minutes),
    }
    try:
        SlotGrid(**merged)
    except ValueError as exc:
        raise ValidationError(str(exc), [k for k in merged if k in changes])

    positive = [
        "default_duration_minutes", "no_show_grace_minutes", "average_turnover_minutes",
        "waitlist_max_party_size", "max_waitlist_length",
    ]
    invalid = [name for name in positive if name in changes and changes[name] <= 0]
    if invalid:
        raise ValidationError(f"Must be positive: {', '.join(invalid)}", invalid)

    for field, value in changes.items():
        setattr(settings, field, value)

    await db.commit()
    await db.refresh(settings)

    return settings
