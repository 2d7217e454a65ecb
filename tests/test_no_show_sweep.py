"""Tests for the no-show sweep"""

import pytest
from datetime import datetime
from sqlalchemy.exc import OperationalError

from tablemind.scheduling import sweep
from tablemind.scheduling.service import SchedulingService
from tablemind.scheduling.sweep import count_potential_no_shows, sweep_no_shows


def at(hour, minute=0):
    return datetime(2099, 6, 15, hour, minute)


@pytest.fixture
async def bookings(test_db, test_restaurant, test_tables):
    """Ana overdue, Ben seated, Cal not yet overdue"""
    scheduler = SchedulingService(test_db, test_restaurant, now=at(12, 0))
    t1, t2, t3 = (table.id for table in test_tables)

    ana = await scheduler.create(t1, at(13, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001")
    ben = await scheduler.create(t2, at(13, 0), customer_name="Ben", party_size=2)
    cal = await scheduler.create(t3, at(14, 0), customer_name="Cal", party_size=4)
    await scheduler.perform(ben.reservation.id, "seat")

    return {
        "scheduler": scheduler,
        "ana": ana.reservation.id,
        "ana_customer": ana.reservation.customer_id,
        "ben": ben.reservation.id,
        "cal": cal.reservation.id,
    }


@pytest.mark.asyncio
async def test_preview_counts_without_changing(test_db, test_restaurant, bookings):
    """Two hour grace: at 15:30 only the 13:00 booking is overdue"""
    assert await count_potential_no_shows(test_db, test_restaurant, now=at(15, 30)) == 1

    reservation = await bookings["scheduler"].get(bookings["ana"])
    assert reservation.status == "booked"


@pytest.mark.asyncio
async def test_sweep_marks_overdue_and_updates_customer(test_db, test_restaurant, bookings):
    marked = await sweep_no_shows(test_db, test_restaurant, now=at(15, 30))
    assert marked == 1

    scheduler = bookings["scheduler"]
    ana = await scheduler.get(bookings["ana"])
    assert ana.status == "no_show"
    assert ana.no_show_at == at(15, 30)
    assert (await scheduler.get(bookings["ben"])).status == "seated"
    assert (await scheduler.get(bookings["cal"])).status == "booked"

    customer = await scheduler.customers.get(bookings["ana_customer"])
    assert customer.no_show_count == 1


@pytest.mark.asyncio
async def test_sweep_is_idempotent(test_db, test_restaurant, bookings):
    """A second sweep finds nothing left to mark"""
    assert await sweep_no_shows(test_db, test_restaurant, now=at(15, 30)) == 1
    assert await sweep_no_shows(test_db, test_restaurant, now=at(15, 30)) == 0

    customer = await bookings["scheduler"].customers.get(bookings["ana_customer"])
    assert customer.no_show_count == 1
    assert await count_potential_no_shows(test_db, test_restaurant, now=at(15, 30)) == 0


@pytest.mark.asyncio
async def test_later_sweep_catches_more(test_db, test_restaurant, bookings):
    assert await sweep_no_shows(test_db, test_restaurant, now=at(16, 30)) == 2

    scheduler = bookings["scheduler"]
    assert (await scheduler.get(bookings["cal"])).status == "no_show"
    assert (await scheduler.get(bookings["ben"])).status == "seated"


@pytest.mark.asyncio
async def test_failed_reservation_does_not_stop_the_sweep(test_db, test_restaurant, bookings, monkeypatch):
    """A storage error on one booking is logged, the rest are still marked"""
    mark_one = sweep._mark_one

    async def flaky_mark_one(db, reservation, now):
        if reservation.id == bookings["ana"]:
            raise OperationalError("UPDATE reservations", {}, Exception("lock timeout"))
        return await mark_one(db, reservation, now)

    monkeypatch.setattr(sweep, "_mark_one", flaky_mark_one)

    assert await sweep_no_shows(test_db, test_restaurant, now=at(16, 30)) == 1

    scheduler = bookings["scheduler"]
    assert (await scheduler.get(bookings["ana"])).status == "booked"
    assert (await scheduler.get(bookings["cal"])).status == "no_show"

    customer = await scheduler.customers.get(bookings["ana_customer"])
    assert customer.no_show_count == 0
