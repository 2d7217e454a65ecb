"""Dining table API endpoints"""

from typing import List
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.database import get_db
from tablemind.models.reservation import Reservation, ACTIVE_STATUSES
from tablemind.models.restaurant import Restaurant
from tablemind.models.table import DiningTable, TABLE_SHAPES
from tablemind.models.user import User, UserRole
from tablemind.repositories.audit import record_action
from tablemind.repositories.base import TenantRepository
from tablemind.scheduling.errors import ConflictError, NotFoundError, TableInUseError, ValidationError
from tablemind.scheduling.service import unit_of_work
from tablemind.schemas.table import TableCreate, TableUpdate, TableResponse
from tablemind.api.auth import get_restaurant, require_role

router = APIRouter()
logger = structlog.get_logger()


def _validate(data: dict) -> None:
    errors = []
    if "name" in data and not (data["name"] or "").strip():
        errors.append("name")
    if "capacity" in data and (data["capacity"] is None or data["capacity"] < 1):
        errors.append("capacity")
    if "shape" in data and data["shape"] not in TABLE_SHAPES:
        errors.append("shape")
    if errors:
        raise ValidationError(f"Invalid {', '.join(errors)}", errors)


async def _ensure_unique_name(repo: TenantRepository, name: str, table_id=None) -> None:
    conditions = [DiningTable.name == name]
    if table_id is not None:
        conditions.append(DiningTable.id != table_id)
    if await repo.count(*conditions):
        raise ConflictError(f"A table named {name} already exists")


@router.get("", response_model=List[TableResponse])
async def list_tables(
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """List the restaurant's tables by name"""
    repo = TenantRepository(DiningTable, db, restaurant.id)
    return await repo.get_all(order_by=DiningTable.name)


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
async def create_table(
    table_data: TableCreate,
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a table"""
    data = table_data.model_dump()
    _validate(data)
    data["name"] = data["name"].strip()

    repo = TenantRepository(DiningTable, db, restaurant.id)
    async with unit_of_work(db, "create table", restaurant_id=str(restaurant.id)):
        await _ensure_unique_name(repo, data["name"])
        table = await repo.create(data)
        record_action(db, restaurant.id, "table.create", "table", table.id, data, actor=current_user)

    logger.info("Table created", restaurant_id=str(restaurant.id), table_id=str(table.id))
    return table


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(
    table_id: UUID,
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Get a table"""
    table = await TenantRepository(DiningTable, db, restaurant.id).get(table_id)
    if table is None:
        raise NotFoundError("Table")
    return table


@router.put("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: UUID,
    table_data: TableUpdate,
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Rename, resize or reshape a table"""
    changes = table_data.model_dump(exclude_unset=True)
    _validate(changes)

    repo = TenantRepository(DiningTable, db, restaurant.id)
    async with unit_of_work(db, "update table", restaurant_id=str(restaurant.id)):
        table = await repo.get(table_id, for_update=True)
        if table is None:
            raise NotFoundError("Table")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            await _ensure_unique_name(repo, changes["name"], table.id)
        for field, value in changes.items():
            setattr(table, field, value)
        record_action(db, restaurant.id, "table.update", "table", table.id, changes, actor=current_user)

    return table


@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_table(
    table_id: UUID,
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a table; refused while it still has active reservations"""
    repo = TenantRepository(DiningTable, db, restaurant.id)
    reservations = TenantRepository(Reservation, db, restaurant.id)

    async with unit_of_work(db, "delete table", restaurant_id=str(restaurant.id)):
        table = await repo.get(table_id, for_update=True)
        if table is None:
            raise NotFoundError("Table")

        active = await reservations.count(
            Reservation.table_id == table.id,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        if active:
            raise TableInUseError(
                f"{table.name} has {active} active reservation(s); move or cancel them first"
            )

        # Keep history, just without a table
        await db.execute(
            update(Reservation)
            .where(Reservation.restaurant_id == restaurant.id, Reservation.table_id == table.id)
            .values(table_id=None)
        )
        record_action(db, restaurant.id, "table.delete", "table", table.id, {"name": table.name}, actor=current_user)
        await repo.delete(table)

    logger.info("Table deleted", restaurant_id=str(restaurant.id), table_id=str(table_id))
