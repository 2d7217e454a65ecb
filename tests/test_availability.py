"""Tests for the pure availability checks"""

from datetime import date, datetime
from types import SimpleNamespace
from uuid import uuid4

from tablemind.scheduling.availability import (
    check_availability,
    check_interval,
    find_conflict,
    overlaps,
)
from tablemind.scheduling.timeslots import SlotGrid

DAY = date(2099, 6, 15)
T1 = uuid4()
T2 = uuid4()


def booking(table_id, start_hour, start_minute, end_hour, end_minute, status="booked"):
    return SimpleNamespace(
        id=uuid4(),
        table_id=table_id,
        customer_name="Guest",
        start_time=datetime(2099, 6, 15, start_hour, start_minute),
        end_time=datetime(2099, 6, 15, end_hour, end_minute),
        status=status,
    )


def test_overlap_is_symmetric():
    """a overlaps b exactly when b overlaps a"""
    cases = [
        ((0, 10), (5, 15)),
        ((0, 10), (10, 20)),
        ((0, 10), (2, 3)),
        ((5, 6), (0, 10)),
        ((0, 1), (2, 3)),
    ]
    for (a_start, a_end), (b_start, b_end) in cases:
        assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


def test_touching_intervals_do_not_overlap():
    """A booking may start exactly when the previous one ends"""
    assert not overlaps(0, 10, 10, 20)
    assert not overlaps(10, 20, 0, 10)
    assert overlaps(0, 11, 10, 20)


def test_conflict_on_same_table():
    """19:00-20:30 blocks 20:00 but not 20:30"""
    existing = [booking(T1, 19, 0, 20, 30)]
    conflict = find_conflict(
        T1, datetime(2099, 6, 15, 20, 0), datetime(2099, 6, 15, 21, 30), existing
    )
    assert conflict is existing[0]

    assert find_conflict(
        T1, datetime(2099, 6, 15, 20, 30), datetime(2099, 6, 15, 22, 0), existing
    ) is None


def test_other_tables_are_ignored():
    """Only reservations on the same table conflict"""
    existing = [booking(T2, 19, 0, 20, 30)]
    assert find_conflict(
        T1, datetime(2099, 6, 15, 19, 0), datetime(2099, 6, 15, 20, 30), existing
    ) is None


def test_inactive_reservations_free_the_table():
    """Cancelled, no-show and finished reservations never block"""
    existing = [
        booking(T1, 19, 0, 20, 30, status="cancelled"),
        booking(T1, 19, 0, 20, 30, status="no_show"),
        booking(T1, 19, 0, 20, 30, status="finished"),
    ]
    result = check_interval(
        T1, datetime(2099, 6, 15, 19, 0), datetime(2099, 6, 15, 20, 30), existing
    )
    assert result.available
    assert result.conflict is None


def test_excluded_reservation_does_not_conflict_with_itself():
    """Moving a reservation within its own interval is allowed"""
    existing = [booking(T1, 19, 0, 20, 30, status="seated")]
    result = check_interval(
        T1,
        datetime(2099, 6, 15, 19, 30),
        datetime(2099, 6, 15, 21, 0),
        existing,
        exclude_reservation_id=existing[0].id,
    )
    assert result.available


def test_slot_based_check():
    """Slots 28..34 are 19:00-20:30 on the default axis"""
    grid = SlotGrid()
    existing = [booking(T1, 19, 0, 20, 30)]

    blocked = check_availability(T1, 32, 6, existing, grid, DAY)
    assert not blocked.available
    assert blocked.conflict is existing[0]

    free = check_availability(T1, 34, 6, existing, grid, DAY)
    assert free.available
