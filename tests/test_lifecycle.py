"""Tests for the reservation state machine"""

import pytest
from datetime import datetime
from types import SimpleNamespace

from tablemind.scheduling import lifecycle
from tablemind.scheduling.errors import IllegalTransitionError, ValidationError
from tablemind.scheduling.lifecycle import StatDelta

NOW = datetime(2099, 6, 15, 19, 5)


def reservation(status="booked", visit_counted=False):
    return SimpleNamespace(
        status=status,
        visit_counted=visit_counted,
        start_time=datetime(2099, 6, 15, 19, 0),
        seated_at=None,
        finished_at=None,
        cancelled_at=None,
        no_show_at=None,
        actual_arrival_time=None,
        minutes_early_late=None,
    )


def customer(**counts):
    return SimpleNamespace(
        total_visits=counts.get("visits", 0),
        no_show_count=counts.get("no_shows", 0),
        cancellation_count=counts.get("cancellations", 0),
        last_visit_date=None,
        tags=[],
    )


@pytest.mark.parametrize("current,target", [
    ("booked", "confirmed"),
    ("booked", "seated"),
    ("booked", "finished"),
    ("confirmed", "seated"),
    ("confirmed", "cancelled"),
    ("seated", "finished"),
    ("seated", "no_show"),
])
def test_legal_transitions(current, target):
    """Forward moves along the lifecycle are allowed"""
    assert lifecycle.can_transition(current, target)


@pytest.mark.parametrize("current", ["finished", "cancelled", "no_show"])
def test_terminal_states_reject_changes(current):
    """Nothing leaves a terminal state"""
    with pytest.raises(IllegalTransitionError):
        lifecycle.plan(current, "seated", visit_counted=False)


def test_seated_cannot_go_back_to_confirmed():
    """The lifecycle never moves backwards"""
    with pytest.raises(IllegalTransitionError):
        lifecycle.plan("seated", "confirmed", visit_counted=True)


def test_same_status_is_a_no_op():
    """Re-applying the current status has no side effects"""
    transition = lifecycle.plan("seated", "seated", visit_counted=True)
    assert not transition.changed
    assert not transition.delta


def test_unknown_status_and_action():
    """Unknown values are validation errors"""
    with pytest.raises(ValidationError):
        lifecycle.plan("booked", "eaten", visit_counted=False)
    with pytest.raises(ValidationError):
        lifecycle.parse_action("dance")


def test_visit_counted_once_across_seat_and_finish():
    """Seating counts the visit; finishing afterwards does not count again"""
    r = reservation()
    guest = customer()

    seated = lifecycle.apply(r, "seated", NOW)
    lifecycle.apply_stats(guest, seated.delta, NOW)
    assert seated.delta == StatDelta(visits=1)
    assert r.seated_at == NOW
    assert r.visit_counted

    finished = lifecycle.apply(r, "finished", NOW)
    lifecycle.apply_stats(guest, finished.delta, NOW)
    assert finished.delta == StatDelta()
    assert r.finished_at == NOW

    assert guest.total_visits == 1
    assert guest.last_visit_date == NOW


def test_finish_without_seating_counts_the_visit():
    """Skipping the seated state still records one visit"""
    r = reservation(status="confirmed")
    transition = lifecycle.apply(r, "finished", NOW)
    assert transition.delta.visits == 1


def test_no_show_and_cancel_deltas():
    """Each failure mode increments its own counter"""
    assert lifecycle.plan("booked", "no_show", False).delta == StatDelta(no_shows=1)
    assert lifecycle.plan("confirmed", "cancelled", False).delta == StatDelta(cancellations=1)


def test_cancel_after_seating_keeps_the_visit():
    """A seated party that is cancelled has still visited"""
    r = reservation(status="seated", visit_counted=True)
    transition = lifecycle.apply(r, "cancelled", NOW)
    assert transition.delta == StatDelta(cancellations=1)
    assert r.cancelled_at == NOW


def test_record_arrival_early_and_late():
    """Positive minutes mean early, negative mean late"""
    r = reservation()
    assert lifecycle.record_arrival(r, datetime(2099, 6, 15, 18, 50)) == 10
    assert r.actual_arrival_time == datetime(2099, 6, 15, 18, 50)
    assert lifecycle.record_arrival(r, datetime(2099, 6, 15, 19, 15)) == -15

    assert lifecycle.arrival_message(10) == "Guest arrived 10 minutes early"
    assert lifecycle.arrival_message(-15) == "Guest arrived 15 minutes late"
    assert lifecycle.arrival_message(0) == "Guest arrived on time"


def test_actions_map_to_statuses():
    """Front-of-house actions"""
    assert lifecycle.parse_action("arrive") == "confirmed"
    assert lifecycle.parse_action("seat") == "seated"
    assert lifecycle.parse_action("finish") == "finished"
    assert lifecycle.parse_action("no_show") == "no_show"
    assert lifecycle.parse_action("cancel") == "cancelled"
