"""No-show sweep.

Booked or confirmed reservations whose start time is more than the grace
period in the past are marked ``no_show``. Each reservation is flipped with
a conditional UPDATE so a sweep racing another sweep, or a host seating
the party at the same moment, changes it at most once.
"""

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.models.customer import Customer
from tablemind.models.reservation import Reservation
from tablemind.models.restaurant import Restaurant
from tablemind.repositories.audit import record_action
from tablemind.scheduling import lifecycle, tagging
from tablemind.scheduling.config import ScheduleConfig

logger = structlog.get_logger()

SWEEPABLE_STATUSES = (lifecycle.BOOKED, lifecycle.CONFIRMED)


class _Overdue(NamedTuple):
    id: object
    restaurant_id: object
    customer_id: object
    status: str
    visit_counted: bool


def _candidates_query(restaurant_id, cutoff: datetime):
    return select(Reservation).where(
        Reservation.restaurant_id == restaurant_id,
        Reservation.status.in_(SWEEPABLE_STATUSES),
        Reservation.start_time < cutoff,
    )


def sweep_cutoff(config: ScheduleConfig, now: datetime) -> datetime:
    return now - timedelta(minutes=config.no_show_grace_minutes)


async def count_potential_no_shows(
    db: AsyncSession, restaurant: Restaurant, now: Optional[datetime] = None
) -> int:
    """How many reservations the next sweep would mark, without changing them"""
    config = ScheduleConfig.for_restaurant(restaurant)
    cutoff = sweep_cutoff(config, now or config.now())
    query = select(func.count()).select_from(_candidates_query(restaurant.id, cutoff).subquery())
    result = await db.execute(query)
    return result.scalar()


async def _mark_one(db: AsyncSession, reservation: _Overdue, now: datetime) -> bool:
    """Flip one reservation to no_show; False if something else got there first"""
    transition = lifecycle.plan(reservation.status, lifecycle.NO_SHOW, reservation.visit_counted)
    result = await db.execute(
        update(Reservation)
        .where(
            Reservation.id == reservation.id,
            Reservation.status.in_(SWEEPABLE_STATUSES),
        )
        .values(status=lifecycle.NO_SHOW, no_show_at=now, updated_at=now)
    )
    if result.rowcount != 1:
        await db.rollback()
        return False

    if reservation.customer_id is not None:
        customer = await db.get(Customer, reservation.customer_id, with_for_update=True)
        if customer is not None:
            lifecycle.apply_stats(customer, transition.delta, now)
            tagging.apply_auto_tags(customer)

    record_action(
        db, reservation.restaurant_id, "reservation.no_show_sweep", "reservation", reservation.id,
        {"before": {"status": transition.previous}, "after": {"status": lifecycle.NO_SHOW}},
    )
    await db.commit()
    return True


async def sweep_no_shows(
    db: AsyncSession, restaurant: Restaurant, now: Optional[datetime] = None
) -> int:
    """Mark overdue reservations of one restaurant as no-shows; returns how many"""
    config = ScheduleConfig.for_restaurant(restaurant)
    restaurant_id = restaurant.id
    now = now or config.now()
    cutoff = sweep_cutoff(config, now)

    result = await db.execute(_candidates_query(restaurant_id, cutoff).order_by(Reservation.start_time))
    # Plain values; a rollback below would expire ORM instances
    overdue: List[_Overdue] = [
        _Overdue(r.id, r.restaurant_id, r.customer_id, r.status, bool(r.visit_counted))
        for r in result.scalars().all()
    ]

    marked = 0
    for reservation in overdue:
        try:
            if await _mark_one(db, reservation, now):
                marked += 1
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Failed to mark reservation as no-show",
                restaurant_id=str(restaurant_id),
                reservation_id=str(reservation.id),
                error=str(exc),
            )

    if marked:
        logger.info(
            "No-show sweep completed",
            restaurant_id=str(restaurant_id),
            marked=marked,
            cutoff=cutoff.isoformat(),
        )
    return marked


async def sweep_all(db: AsyncSession) -> int:
    """Sweep every active restaurant, each in its own local time"""
    result = await db.execute(select(Restaurant.id).where(Restaurant.is_active == True))
    restaurant_ids = list(result.scalars().all())

    total = 0
    for restaurant_id in restaurant_ids:
        result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
        total += await sweep_no_shows(db, result.scalar_one())
    return total
