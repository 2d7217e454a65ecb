"""Reservation state machine and the customer statistics it drives.

Legal moves::

    booked ──► confirmed ──► seated ──► finished
       │           │            │
       └───────────┴────────────┴──► cancelled | no_show

``booked`` may also jump straight to ``seated`` or ``finished`` (walk-in
style service without a confirmation call). ``finished``, ``cancelled`` and
``no_show`` are terminal. Asking for the status a reservation already has
is accepted and does nothing, which is what makes repeated "seat" clicks
harmless.

A visit is counted once per reservation, on whichever of seated/finished
happens first; ``Reservation.visit_counted`` remembers that it happened.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from tablemind.models.reservation import ReservationStatus
from tablemind.scheduling.errors import IllegalTransitionError, ValidationError

BOOKED = ReservationStatus.BOOKED.value
CONFIRMED = ReservationStatus.CONFIRMED.value
SEATED = ReservationStatus.SEATED.value
FINISHED = ReservationStatus.FINISHED.value
CANCELLED = ReservationStatus.CANCELLED.value
NO_SHOW = ReservationStatus.NO_SHOW.value

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BOOKED: frozenset({CONFIRMED, SEATED, FINISHED, CANCELLED, NO_SHOW}),
    CONFIRMED: frozenset({SEATED, FINISHED, CANCELLED, NO_SHOW}),
    SEATED: frozenset({FINISHED, CANCELLED, NO_SHOW}),
    FINISHED: frozenset(),
    CANCELLED: frozenset(),
    NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Front-of-house actions and the status each one leads to
ACTIONS: Dict[str, str] = {
    "arrive": CONFIRMED,
    "seat": SEATED,
    "finish": FINISHED,
    "no_show": NO_SHOW,
    "cancel": CANCELLED,
}

_TIMESTAMP_FIELDS = {
    SEATED: "seated_at",
    FINISHED: "finished_at",
    CANCELLED: "cancelled_at",
    NO_SHOW: "no_show_at",
}


@dataclass(frozen=True)
class StatDelta:
    """Increments to apply to the linked customer"""
    visits: int = 0
    no_shows: int = 0
    cancellations: int = 0

    def __bool__(self) -> bool:
        return bool(self.visits or self.no_shows or self.cancellations)


@dataclass(frozen=True)
class Transition:
    previous: str
    current: str
    delta: StatDelta = field(default_factory=StatDelta)

    @property
    def changed(self) -> bool:
        return self.previous != self.current


def parse_status(value: str) -> str:
    if value not in TRANSITIONS:
        raise ValidationError(f"Unknown reservation status: {value}", ["status"])
    return value


def parse_action(action: str) -> str:
    try:
        return ACTIONS[action]
    except KeyError:
        raise ValidationError(f"Unknown action: {action}", ["action"])


def can_transition(current: str, target: str) -> bool:
    return current == target or target in TRANSITIONS.get(current, frozenset())


def plan(current: str, target: str, visit_counted: bool) -> Transition:
    """Validate a status change and work out its side effects"""
    target = parse_status(target)
    if current == target:
        return Transition(current, target)
    if not can_transition(current, target):
        raise IllegalTransitionError(current, target)

    if target in (SEATED, FINISHED):
        delta = StatDelta(visits=0 if visit_counted else 1)
    elif target == NO_SHOW:
        delta = StatDelta(no_shows=1)
    elif target == CANCELLED:
        delta = StatDelta(cancellations=1)
    else:
        delta = StatDelta()
    return Transition(current, target, delta)


def apply(reservation, target: str, now: datetime) -> Transition:
    """Move ``reservation`` to ``target`` in place and return what happened"""
    transition = plan(reservation.status, target, reservation.visit_counted)
    if not transition.changed:
        return transition

    reservation.status = transition.current
    timestamp_field = _TIMESTAMP_FIELDS.get(transition.current)
    if timestamp_field:
        setattr(reservation, timestamp_field, now)
    if transition.delta.visits:
        reservation.visit_counted = True
    return transition


def record_arrival(reservation, arrival_time: datetime) -> int:
    """Stamp the arrival time; returns minutes early (positive) or late (negative)"""
    minutes = round((reservation.start_time - arrival_time).total_seconds() / 60)
    reservation.actual_arrival_time = arrival_time
    reservation.minutes_early_late = minutes
    return minutes


def apply_stats(customer, delta: StatDelta, now: datetime) -> None:
    """Add ``delta`` to a customer's counters"""
    if delta.visits:
        customer.total_visits = (customer.total_visits or 0) + delta.visits
        customer.last_visit_date = now
    if delta.no_shows:
        customer.no_show_count = (customer.no_show_count or 0) + delta.no_shows
    if delta.cancellations:
        customer.cancellation_count = (customer.cancellation_count or 0) + delta.cancellations


def arrival_message(minutes_early_late: Optional[int]) -> str:
    if not minutes_early_late:
        return "Guest arrived on time"
    if minutes_early_late > 0:
        return f"Guest arrived {minutes_early_late} minutes early"
    return f"Guest arrived {abs(minutes_early_late)} minutes late"
