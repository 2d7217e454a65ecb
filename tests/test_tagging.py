"""Tests for customer tags, reliability and suggestions"""

from datetime import datetime, timedelta
from types import SimpleNamespace

from tablemind.scheduling import tagging
from tablemind.scheduling.tagging import VisitProfile

NOW = datetime(2099, 6, 15, 20, 0)


def customer(visits=0, no_shows=0, cancellations=0, tags=None):
    return SimpleNamespace(
        total_visits=visits,
        no_show_count=no_shows,
        cancellation_count=cancellations,
        tags=tags or [],
    )


def visit(days_ago, party_size=2, status="finished", notes=None):
    return SimpleNamespace(
        start_time=NOW - timedelta(days=days_ago),
        party_size=party_size,
        status=status,
        notes=notes,
    )


def test_auto_tags_by_visits():
    """Regular at five visits, VIP at ten"""
    regular = customer(visits=5)
    assert tagging.apply_auto_tags(regular) == ["Regular"]
    assert regular.tags == ["Regular"]

    vip = customer(visits=10)
    tagging.apply_auto_tags(vip)
    assert vip.tags == ["VIP"]


def test_auto_tags_for_risk():
    guest = customer(no_shows=2, cancellations=3)
    tagging.apply_auto_tags(guest)
    assert guest.tags == ["High No-Show Risk", "High Cancellation Risk"]


def test_auto_tags_are_not_duplicated():
    """Existing tags stay as they are"""
    guest = customer(visits=6, tags=["Regular", "Allergies"])
    assert tagging.apply_auto_tags(guest) == []
    assert guest.tags == ["Regular", "Allergies"]


def test_reliability_score():
    assert tagging.reliability_score(customer()) == 100
    assert tagging.reliability_score(customer(visits=8, no_shows=1, cancellations=1)) == 80
    assert tagging.reliability_score(customer(no_shows=1)) == 0


def test_risk_level():
    assert tagging.risk_level(customer(visits=3)) == "Low"
    assert tagging.risk_level(customer(no_shows=1)) == "Medium"
    assert tagging.risk_level(customer(cancellations=2)) == "Medium"
    assert tagging.risk_level(customer(no_shows=2)) == "High"
    assert tagging.risk_level(customer(cancellations=3)) == "High"


def test_suggests_new_customer_and_celebrations():
    """A first visit with a birthday note"""
    profile = VisitProfile.from_customer(
        customer(visits=1), [visit(3, notes="Birthday dinner")]
    )
    suggestions = {s.tag: s for s in tagging.suggest_tags(profile, NOW)}

    assert set(suggestions) == {"NewCustomer", "BirthdayCelebrator"}
    # few visits, recent activity
    assert suggestions["NewCustomer"].confidence == 75


def test_suggestions_skip_existing_tags():
    profile = VisitProfile.from_customer(
        customer(visits=6, tags=["Regular"]),
        [visit(d) for d in (1, 8, 15, 22, 29, 36)],
    )
    tags = [s.tag for s in tagging.suggest_tags(profile, NOW)]
    assert "Regular" not in tags
    assert "Reliable" in tags
    assert "IntimateDiner" in tags


def test_large_party_and_risk_confidence():
    """Risk tags earn extra confidence on established customers"""
    profile = VisitProfile.from_customer(
        customer(visits=6, no_shows=1),
        [visit(d, party_size=8) for d in (100, 120, 140)],
    )
    suggestions = {s.tag: s for s in tagging.suggest_tags(profile, NOW)}
    assert "LargePartyOrganizer" in suggestions
    # 80 + 5 for visits - 5 for staleness + 10 for risk
    assert suggestions["NoShowRisk"].confidence == 90
    assert tagging.suggest_tags(profile, NOW)[0].tag == "NoShowRisk"


def test_insights_are_deduplicated():
    insights = tagging.insights_for(["AnniversaryRegular", "BirthdayCelebrator", "VIP"])
    assert insights.count("Special occasion guest - prepare a celebration dessert") == 1
    assert "Consider offering preferred seating" in insights
