"""Customer API endpoints"""

from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.config import settings
from tablemind.database import get_db
from tablemind.models.customer import Customer
from tablemind.models.reservation import Reservation
from tablemind.models.restaurant import Restaurant
from tablemind.models.user import User
from tablemind.repositories.audit import record_action
from tablemind.repositories.base import TenantRepository
from tablemind.scheduling import tagging
from tablemind.scheduling.config import ScheduleConfig
from tablemind.scheduling.errors import ConflictError, NotFoundError, ValidationError
from tablemind.scheduling.phone import mask_phone, normalize_phone
from tablemind.scheduling.service import SchedulingService, unit_of_work
from tablemind.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerDetail,
    CustomerInsights,
    SuggestedTagResponse,
)
from tablemind.schemas.reservation import ReservationResponse
from tablemind.api.auth import get_current_active_user, get_restaurant

router = APIRouter()
logger = structlog.get_logger()


async def _get_customer(repo: TenantRepository, customer_id: UUID, for_update: bool = False) -> Customer:
    customer = await repo.get(customer_id, for_update=for_update)
    if customer is None:
        raise NotFoundError("Customer")
    return customer


async def _history(db: AsyncSession, restaurant_id: UUID, customer_id: UUID) -> List[Reservation]:
    repo = TenantRepository(Reservation, db, restaurant_id)
    return await repo.get_all(
        Reservation.customer_id == customer_id, order_by=Reservation.start_time.desc()
    )


async def _ensure_phone_free(repo: TenantRepository, digits: str, customer_id=None) -> None:
    if not digits:
        return
    conditions = [Customer.phone_digits == digits]
    if customer_id is not None:
        conditions.append(Customer.id != customer_id)
    if await repo.count(*conditions):
        raise ConflictError("Another customer already uses this phone number")


def _clean_tags(tags: List[str]) -> List[str]:
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """List customers, optionally filtered by name or phone substring"""
    repo = TenantRepository(Customer, db, restaurant.id)
    return await repo.get_all(
        search=search,
        search_fields=["name", "phone"],
        order_by=Customer.name,
        offset=skip,
        limit=limit,
    )


@router.get("/lookup", response_model=Optional[CustomerResponse])
async def lookup_customer(
    phone: str,
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Best customer match for a partially typed phone number"""
    scheduler = SchedulingService(db, restaurant)
    return await scheduler.lookup_customer(phone, settings.phone_lookup_min_digits)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a customer"""
    if not customer_data.name.strip():
        raise ValidationError("Invalid name", ["name"])

    repo = TenantRepository(Customer, db, restaurant.id)
    digits = normalize_phone(customer_data.phone)
    async with unit_of_work(db, "create customer", restaurant_id=str(restaurant.id)):
        await _ensure_phone_free(repo, digits)
        customer = await repo.create({
            "name": customer_data.name.strip(),
            "phone": customer_data.phone,
            "phone_digits": digits or None,
            "email": customer_data.email,
            "tags": _clean_tags(customer_data.tags),
            "notes": customer_data.notes,
        })
        record_action(db, restaurant.id, "customer.create", "customer", customer.id, actor=current_user)

    logger.info(
        "Customer created",
        restaurant_id=str(restaurant.id),
        customer_id=str(customer.id),
        phone=mask_phone(customer.phone),
    )
    return customer


@router.get("/{customer_id}", response_model=CustomerDetail)
async def get_customer(
    customer_id: UUID,
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Customer with reservation history, newest first"""
    customer = await _get_customer(TenantRepository(Customer, db, restaurant.id), customer_id)
    history = await _history(db, restaurant.id, customer.id)
    return CustomerDetail(
        **CustomerResponse.model_validate(customer).model_dump(),
        reservations=[ReservationResponse.model_validate(r) for r in history],
    )


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    customer_data: CustomerUpdate,
    restaurant: Restaurant = Depends(get_restaurant),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Update contact details, tags or notes"""
    changes = customer_data.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Invalid name", ["name"])

    repo = TenantRepository(Customer, db, restaurant.id)
    async with unit_of_work(db, "update customer", restaurant_id=str(restaurant.id)):
        customer = await _get_customer(repo, customer_id, for_update=True)
        if "phone" in changes:
            digits = normalize_phone(changes["phone"])
            await _ensure_phone_free(repo, digits, customer.id)
            customer.phone_digits = digits or None
        if "tags" in changes:
            changes["tags"] = _clean_tags(changes["tags"] or [])
        if changes.get("name"):
            changes["name"] = changes["name"].strip()
        for field, value in changes.items():
            setattr(customer, field, value)
        record_action(
            db, restaurant.id, "customer.update", "customer", customer.id,
            {k: v for k, v in changes.items() if k != "phone"}, actor=current_user,
        )

    return customer


@router.get("/{customer_id}/insights", response_model=CustomerInsights)
async def get_customer_insights(
    customer_id: UUID,
    restaurant: Restaurant = Depends(get_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Suggested tags, reliability and service hints for a customer"""
    customer = await _get_customer(TenantRepository(Customer, db, restaurant.id), customer_id)
    history = await _history(db, restaurant.id, customer.id)

    profile = tagging.VisitProfile.from_customer(customer, history)
    suggestions = tagging.suggest_tags(profile, ScheduleConfig.for_restaurant(restaurant).now())
    tags = list(customer.tags or []) + [s.tag for s in suggestions]

    return CustomerInsights(
        customer_id=customer.id,
        reliability_score=tagging.reliability_score(customer),
        risk_level=tagging.risk_level(customer),
        suggested_tags=[SuggestedTagResponse.model_validate(s) for s in suggestions],
        insights=tagging.insights_for(tags),
    )
