"""Reservation and customer reporting.

Pure aggregations over rows the caller has already loaded. Rates are
percentages rounded to one decimal place.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Sequence, Tuple

from tablemind.scheduling import lifecycle, tagging
from tablemind.scheduling.timeslots import SlotGrid

PERIODS = {"week": 7, "month": 30, "quarter": 90, "year": 365}

# Statuses whose interval actually held (or still holds) a table
OCCUPYING_STATUSES = frozenset({
    lifecycle.BOOKED, lifecycle.CONFIRMED, lifecycle.SEATED, lifecycle.FINISHED,
})

VISIT_BANDS = (("new", 0, 1), ("occasional", 2, 4), ("regular", 5, 9), ("vip", 10, None))


def period_range(period: str, today: date) -> Tuple[date, date]:
    """Inclusive date range ending today for a named period"""
    try:
        days = PERIODS[period]
    except KeyError:
        raise ValueError(f"Unknown period: {period}")
    return today - timedelta(days=days - 1), today


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def overview(
    reservations: Sequence[Any],
    table_count: int,
    grid: SlotGrid,
    start_date: date,
    end_date: date,
) -> Dict[str, Any]:
    statuses = Counter(r.status for r in reservations)
    total = len(reservations)
    guests = sum(r.party_size for r in reservations)

    occupied = sum(
        (r.end_time - r.start_time).total_seconds() / 60
        for r in reservations
        if r.status in OCCUPYING_STATUSES and r.table_id is not None
    )
    days = (end_date - start_date).days + 1
    capacity = table_count * grid.span_minutes * days

    return {
        "start_date": start_date,
        "end_date": end_date,
        "total_reservations": total,
        "total_guests": guests,
        "average_party_size": round(guests / total, 1) if total else None,
        "finished": statuses[lifecycle.FINISHED],
        "cancelled": statuses[lifecycle.CANCELLED],
        "no_shows": statuses[lifecycle.NO_SHOW],
        "completion_rate": _rate(statuses[lifecycle.FINISHED], total),
        "no_show_rate": _rate(statuses[lifecycle.NO_SHOW], total),
        "cancellation_rate": _rate(statuses[lifecycle.CANCELLED], total),
        "table_utilization": round(occupied / capacity * 100, 1) if capacity else 0.0,
    }


def visit_band(total_visits: int) -> str:
    for name, low, high in VISIT_BANDS:
        if total_visits >= low and (high is None or total_visits <= high):
            return name
    return "new"


def segmentation(customers: Iterable[Any]) -> Dict[str, Any]:
    by_risk = Counter({"Low": 0, "Medium": 0, "High": 0})
    by_visits = Counter({name: 0 for name, _, _ in VISIT_BANDS})
    total = 0
    for customer in customers:
        total += 1
        by_risk[tagging.risk_level(customer)] += 1
        by_visits[visit_band(customer.total_visits or 0)] += 1
    return {"total_customers": total, "by_risk": dict(by_risk), "by_visits": dict(by_visits)}
