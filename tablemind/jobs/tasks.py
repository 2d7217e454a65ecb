"""Background job tasks"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import select

from tablemind.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Run a coroutine to completion from a synchronous worker"""
    return asyncio.run(coro)


@celery_app.task(name="sweep_no_shows")
def sweep_no_shows(restaurant_id: Optional[str] = None):
    """Mark overdue reservations as no-shows, for one restaurant or all"""
    logger.info("Running no-show sweep", restaurant_id=restaurant_id)

    async def _sweep():
        from tablemind.database import SessionLocal
        from tablemind.models.restaurant import Restaurant
        from tablemind.scheduling import sweep

        async with SessionLocal() as db:
            if restaurant_id is None:
                return await sweep.sweep_all(db)

            result = await db.execute(
                select(Restaurant).where(Restaurant.id == UUID(restaurant_id))
            )
            restaurant = result.scalar_one_or_none()
            if restaurant is None:
                logger.warning("Restaurant not found for sweep", restaurant_id=restaurant_id)
                return 0
            return await sweep.sweep_no_shows(db, restaurant)

    marked = run_async(_sweep())
    logger.info("No-show sweep finished", marked=marked)
    return marked


@celery_app.task(name="purge_waitlist")
def purge_waitlist():
    """Delete closed waitlist entries past the retention window"""
    logger.info("Purging old waitlist entries")

    async def _purge():
        from tablemind.database import SessionLocal
        from tablemind.models.restaurant import Restaurant
        from tablemind.scheduling.waitlist import WaitlistQueue

        removed = 0
        async with SessionLocal() as db:
            result = await db.execute(select(Restaurant.id).where(Restaurant.is_active == True))
            for restaurant_id in result.scalars().all():
                restaurant = (
                    await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
                ).scalar_one()
                removed += await WaitlistQueue(db, restaurant).purge()
        return removed

    removed = run_async(_purge())
    logger.info("Waitlist purge finished", removed=removed)
    return removed
