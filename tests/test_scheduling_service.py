"""Tests for reservation scheduling against the database"""

import pytest
from datetime import date, datetime, timezone
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from uuid import uuid4

from tablemind.models.audit import AuditLog
from tablemind.scheduling.errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    PastTimeError,
    StorageError,
    ValidationError,
)
from tablemind.scheduling.service import SchedulingService

DAY = date(2099, 6, 15)


def at(hour, minute=0):
    return datetime(2099, 6, 15, hour, minute)


@pytest.fixture
async def scheduler(test_db, test_restaurant, test_tables):
    """Scheduler whose clock reads noon on the booking day"""
    return SchedulingService(test_db, test_restaurant, now=at(12, 0))


@pytest.fixture
def table_ids(test_tables):
    return [table.id for table in test_tables]


@pytest.mark.asyncio
async def test_no_double_booking(scheduler, table_ids):
    """19:00-20:30 blocks 20:00 on the same table but not 20:30"""
    t1 = table_ids[0]
    first = await scheduler.create(t1, at(19, 0), end_time=at(20, 30), customer_name="Ana", party_size=2)
    first_id = first.reservation.id

    with pytest.raises(ConflictError) as exc_info:
        await scheduler.create(t1, at(20, 0), customer_name="Ben", party_size=2)
    assert exc_info.value.conflicting["id"] == str(first_id)
    assert exc_info.value.to_dict()["conflicting_reservation"]["start_time"] == "2099-06-15T19:00:00"

    second = await scheduler.create(t1, at(20, 30), customer_name="Ben", party_size=2)
    assert second.reservation.start_time == at(20, 30)
    assert second.reservation.end_time == at(22, 0)


@pytest.mark.asyncio
async def test_other_table_same_time_is_fine(scheduler, table_ids):
    await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    booking = await scheduler.create(table_ids[1], at(19, 0), customer_name="Ben", party_size=2)
    assert booking.reservation.table_id == table_ids[1]


@pytest.mark.asyncio
async def test_cancelled_reservation_frees_the_table(scheduler, table_ids):
    """Only active reservations hold a table"""
    t1 = table_ids[0]
    first = await scheduler.create(t1, at(19, 0), customer_name="Ana", party_size=2)
    await scheduler.cancel(first.reservation.id)

    booking = await scheduler.create(t1, at(19, 0), customer_name="Ben", party_size=2)
    assert booking.reservation.status == "booked"


@pytest.mark.asyncio
async def test_capacity_overflow_is_a_warning(scheduler, table_ids):
    """Oversized parties are booked with a warning, not rejected"""
    booking = await scheduler.create(table_ids[1], at(19, 0), customer_name="Big", party_size=5)
    assert booking.reservation.id is not None
    assert booking.warnings == ["Party of 5 exceeds T2 capacity of 2"]


@pytest.mark.asyncio
async def test_create_validation(scheduler, table_ids):
    t1 = table_ids[0]
    with pytest.raises(ValidationError) as exc_info:
        await scheduler.create(t1, at(19, 0), customer_name="  ", party_size=0)
    assert set(exc_info.value.fields) == {"customer_name", "party_size"}

    with pytest.raises(ValidationError):
        await scheduler.create(t1, at(19, 0), end_time=at(18, 0), customer_name="Ana", party_size=2)

    # runs past the end of the service day
    with pytest.raises(ValidationError):
        await scheduler.create(t1, at(23, 30), customer_name="Ana", party_size=2)


@pytest.mark.asyncio
async def test_cannot_book_in_the_past(test_db, test_restaurant, table_ids):
    late = SchedulingService(test_db, test_restaurant, now=at(20, 0))
    with pytest.raises(PastTimeError):
        await late.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)


@pytest.mark.asyncio
async def test_unknown_table(scheduler):
    with pytest.raises(NotFoundError):
        await scheduler.create(uuid4(), at(19, 0), customer_name="Ana", party_size=2)


@pytest.mark.asyncio
async def test_idempotent_create(scheduler, table_ids):
    """Resubmitting the same key returns the original booking"""
    first = await scheduler.create(
        table_ids[0], at(19, 0), customer_name="Ana", party_size=2, idempotency_key="req-1"
    )
    again = await scheduler.create(
        table_ids[0], at(19, 0), customer_name="Ana", party_size=2, idempotency_key="req-1"
    )
    assert again.replayed
    assert again.reservation.id == first.reservation.id
    assert len(await scheduler.list_for_day(DAY)) == 1


@pytest.mark.asyncio
async def test_same_phone_links_same_customer(scheduler, table_ids):
    """Formatting differences do not create a second profile"""
    first = await scheduler.create(
        table_ids[0], at(18, 0), customer_name="Ana", party_size=2, customer_phone="(555) 201-1001"
    )
    second = await scheduler.create(
        table_ids[1], at(20, 0), customer_name="Ana R", party_size=2, customer_phone="555.201.1001"
    )
    assert first.reservation.customer_id is not None
    assert second.reservation.customer_id == first.reservation.customer_id

    customer = await scheduler.lookup_customer("201-1001")
    assert customer.id == first.reservation.customer_id
    assert await scheduler.lookup_customer("55") is None


@pytest.mark.asyncio
async def test_move_is_all_or_nothing(scheduler, table_ids):
    """A rejected move leaves the reservation where it was"""
    t1, t2 = table_ids[0], table_ids[1]
    mover = await scheduler.create(t1, at(19, 0), customer_name="Ana", party_size=2)
    blocker = await scheduler.create(t2, at(19, 0), customer_name="Ben", party_size=2)
    mover_id, blocker_id = mover.reservation.id, blocker.reservation.id

    with pytest.raises(ConflictError) as exc_info:
        await scheduler.move(mover_id, t2, at(19, 30))
    assert exc_info.value.conflicting["id"] == str(blocker_id)

    unchanged = await scheduler.get(mover_id)
    assert unchanged.table_id == t1
    assert unchanged.start_time == at(19, 0)
    assert unchanged.end_time == at(20, 30)

    moved = await scheduler.move(mover_id, t2, at(20, 30))
    assert moved.reservation.table_id == t2
    assert moved.reservation.start_time == at(20, 30)
    # duration is kept
    assert moved.reservation.end_time == at(22, 0)


@pytest.mark.asyncio
async def test_move_within_own_interval(scheduler, table_ids):
    """A reservation never conflicts with itself"""
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    moved = await scheduler.move(booking.reservation.id, table_ids[0], at(19, 15))
    assert moved.reservation.start_time == at(19, 15)


@pytest.mark.asyncio
async def test_move_into_the_past_rejected(test_db, test_restaurant, table_ids):
    early = SchedulingService(test_db, test_restaurant, now=at(12, 0))
    booking = await early.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id

    later = SchedulingService(test_db, test_restaurant, now=at(18, 0))
    with pytest.raises(PastTimeError):
        await later.move(reservation_id, table_ids[0], at(17, 0))


@pytest.mark.asyncio
async def test_seated_party_can_change_tables(test_db, test_restaurant, table_ids):
    """Moving a seated party keeps its past start time"""
    early = SchedulingService(test_db, test_restaurant, now=at(12, 0))
    booking = await early.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id

    during = SchedulingService(test_db, test_restaurant, now=at(19, 20))
    await during.perform(reservation_id, "seat")
    moved = await during.move(reservation_id, table_ids[2], at(19, 0))
    assert moved.reservation.table_id == table_ids[2]
    assert moved.reservation.status == "seated"


@pytest.mark.asyncio
async def test_finished_reservation_cannot_move(scheduler, table_ids):
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id
    await scheduler.perform(reservation_id, "finish")

    with pytest.raises(ValidationError):
        await scheduler.move(reservation_id, table_ids[1], at(19, 0))


@pytest.mark.asyncio
async def test_update_details_and_time(scheduler, table_ids):
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    await scheduler.create(table_ids[0], at(21, 0), customer_name="Ben", party_size=2)
    reservation_id = booking.reservation.id

    updated = await scheduler.update(reservation_id, party_size=6, notes="Window")
    assert updated.reservation.party_size == 6
    assert updated.reservation.notes == "Window"
    assert updated.warnings == ["Party of 6 exceeds T1 capacity of 4"]

    with pytest.raises(ConflictError):
        await scheduler.update(reservation_id, start_time=at(20, 0))

    updated = await scheduler.update(reservation_id, table_id=table_ids[2], start_time=at(20, 0))
    assert updated.reservation.table_id == table_ids[2]
    assert updated.reservation.end_time == at(21, 30)
    assert updated.warnings == []


@pytest.mark.asyncio
async def test_seat_twice_counts_one_visit(scheduler, table_ids):
    """Repeated seat clicks and the later finish count a single visit"""
    booking = await scheduler.create(
        table_ids[0], at(19, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001"
    )
    reservation_id = booking.reservation.id
    customer_id = booking.reservation.customer_id

    first = await scheduler.perform(reservation_id, "seat")
    second = await scheduler.perform(reservation_id, "seat")
    assert first.transition.changed
    assert not second.transition.changed
    await scheduler.perform(reservation_id, "finish")

    customer = await scheduler.customers.get(customer_id)
    assert customer.total_visits == 1
    assert customer.last_visit_date == at(12, 0)

    result = await scheduler.db.execute(
        select(AuditLog).where(
            AuditLog.resource_id == reservation_id,
            AuditLog.action == "reservation.transition",
        )
    )
    assert len(result.scalars().all()) == 2


@pytest.mark.asyncio
async def test_arrive_records_minutes_early(scheduler, table_ids):
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    outcome = await scheduler.perform(booking.reservation.id, "arrive", arrival_time=at(18, 50))

    assert outcome.reservation.status == "confirmed"
    assert outcome.reservation.minutes_early_late == 10
    assert outcome.message == "Guest arrived 10 minutes early"


@pytest.mark.asyncio
async def test_terminal_status_rejects_changes(scheduler, table_ids):
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id
    await scheduler.cancel(reservation_id)

    with pytest.raises(IllegalTransitionError):
        await scheduler.perform(reservation_id, "seat")

    reservation = await scheduler.get(reservation_id)
    assert reservation.status == "cancelled"


@pytest.mark.asyncio
async def test_cancellations_tag_customer(scheduler, table_ids):
    """Three cancellations earn the risk tag"""
    customer_id = None
    for hour in (14, 16, 18):
        booking = await scheduler.create(
            table_ids[0], at(hour, 0), customer_name="Cal", party_size=2, customer_phone="555-201-1009"
        )
        customer_id = booking.reservation.customer_id
        await scheduler.cancel(booking.reservation.id)

    customer = await scheduler.customers.get(customer_id)
    assert customer.cancellation_count == 3
    assert "High Cancellation Risk" in customer.tags


@pytest.mark.asyncio
async def test_delete_leaves_statistics(scheduler, table_ids):
    """Hard delete has no customer side effects"""
    booking = await scheduler.create(
        table_ids[0], at(19, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001"
    )
    reservation_id = booking.reservation.id
    customer_id = booking.reservation.customer_id

    await scheduler.delete(reservation_id)

    with pytest.raises(NotFoundError):
        await scheduler.get(reservation_id)
    customer = await scheduler.customers.get(customer_id)
    assert customer.cancellation_count == 0
    assert customer.no_show_count == 0


@pytest.mark.asyncio
async def test_timeline_and_availability(scheduler, table_ids):
    await scheduler.create(table_ids[0], at(19, 0), end_time=at(20, 30), customer_name="Ana", party_size=2)

    timeline = await scheduler.timeline(DAY)
    assert [t.name for t in timeline.tables] == ["T1", "T2", "T3"]
    assert len(timeline.labels) == 49
    assert len(timeline.placements) == 1
    assert timeline.placements[0].start_slot == 28
    assert timeline.placements[0].duration_slots == 6

    slots = {entry.table.name: entry for entry in await scheduler.availability(DAY, 32, 6, party_size=3)}
    assert not slots["T1"].availability.available
    assert slots["T2"].availability.available
    assert not slots["T2"].suitable
    assert slots["T3"].suitable

    with pytest.raises(ValidationError):
        await scheduler.availability(DAY, 46, 6)


@pytest.mark.asyncio
async def test_tenant_isolation(test_db, scheduler, other_restaurant, table_ids):
    """Another restaurant cannot see or book into this one"""
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id

    outsider = SchedulingService(test_db, other_restaurant, now=at(12, 0))
    with pytest.raises(NotFoundError):
        await outsider.get(reservation_id)
    with pytest.raises(NotFoundError):
        await outsider.create(table_ids[1], at(19, 0), customer_name="Eve", party_size=2)
    assert await outsider.list_for_day(DAY) == []


@pytest.mark.asyncio
async def test_offset_timestamps_use_restaurant_local_time(scheduler, table_ids):
    """23:00 UTC is 19:00 in New York during daylight time"""
    booking = await scheduler.create(
        table_ids[0],
        datetime(2099, 6, 15, 23, 0, tzinfo=timezone.utc),
        customer_name="Ana",
        party_size=2,
    )
    reservation_id = booking.reservation.id
    assert booking.reservation.start_time == at(19, 0)
    assert booking.reservation.end_time == at(20, 30)

    moved = await scheduler.move(
        reservation_id, table_ids[1], datetime(2099, 6, 15, 23, 30, tzinfo=timezone.utc)
    )
    assert moved.reservation.start_time == at(19, 30)
    assert moved.reservation.end_time == at(21, 0)

    outcome = await scheduler.perform(
        reservation_id, "arrive", arrival_time=datetime(2099, 6, 15, 23, 20, tzinfo=timezone.utc)
    )
    assert outcome.reservation.actual_arrival_time == at(19, 20)
    assert outcome.reservation.minutes_early_late == 10


@pytest.mark.asyncio
async def test_rejected_status_change_discards_edits(scheduler, table_ids):
    booking = await scheduler.create(table_ids[0], at(19, 0), customer_name="Ana", party_size=2)
    reservation_id = booking.reservation.id
    await scheduler.cancel(reservation_id)

    with pytest.raises(IllegalTransitionError):
        await scheduler.update(reservation_id, party_size=9, notes="VIP", status="booked")

    reservation = await scheduler.get(reservation_id)
    assert reservation.party_size == 2
    assert reservation.notes is None
    assert reservation.status == "cancelled"


@pytest.mark.asyncio
async def test_update_applies_edits_and_status_together(scheduler, table_ids):
    booking = await scheduler.create(
        table_ids[0], at(19, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001"
    )
    reservation_id = booking.reservation.id
    customer_id = booking.reservation.customer_id

    updated = await scheduler.update(reservation_id, party_size=3, status="seated")
    assert updated.reservation.party_size == 3
    assert updated.reservation.status == "seated"
    assert updated.reservation.visit_counted

    customer = await scheduler.customers.get(customer_id)
    assert customer.total_visits == 1


@pytest.mark.asyncio
async def test_integrity_violation_becomes_conflict(test_db, scheduler, table_ids, monkeypatch):
    """A customer inserted by a racing request surfaces as a conflict, nothing is kept"""
    await scheduler.customers.create(
        {"name": "Ana", "phone": "555-201-1001", "phone_digits": "5552011001", "tags": []}
    )
    await test_db.commit()

    async def nobody_found(*conditions, **kwargs):
        return []

    monkeypatch.setattr(scheduler.customers, "get_all", nobody_found)

    with pytest.raises(ConflictError) as exc_info:
        await scheduler.create(
            table_ids[0], at(19, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001"
        )
    assert exc_info.value.conflicting is None
    assert await scheduler.reservations.count() == 0


@pytest.mark.asyncio
async def test_storage_failure_rolls_back_everything(scheduler, table_ids, monkeypatch):
    async def failing_create(data):
        raise OperationalError("INSERT INTO reservations", {}, Exception("disk I/O error"))

    monkeypatch.setattr(scheduler.reservations, "create", failing_create)

    with pytest.raises(StorageError) as exc_info:
        await scheduler.create(
            table_ids[0], at(19, 0), customer_name="Ana", party_size=2, customer_phone="555-201-1001"
        )
    assert exc_info.value.status_code == 503
    # The customer flushed before the failure is rolled back with it
    assert await scheduler.customers.count() == 0
