"""Customer tags derived from visit behaviour.

Two layers:

* stored tags, added to ``Customer.tags`` as a side effect of lifecycle
  transitions (VIP, Regular, High No-Show Risk, High Cancellation Risk);
* suggested tags with a confidence score, computed on demand from the
  customer's counters and reservation history for the insights view.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

VIP_VISIT_THRESHOLD = 10
REGULAR_VISIT_THRESHOLD = 5
NO_SHOW_TAG_THRESHOLD = 2
CANCELLATION_TAG_THRESHOLD = 3

WEEKEND_DAYS = {4, 5, 6}  # Friday, Saturday, Sunday


def apply_auto_tags(customer) -> List[str]:
    """Append threshold tags the customer has earned; returns the new ones"""
    visits = customer.total_visits or 0
    earned = []
    if visits >= VIP_VISIT_THRESHOLD:
        earned.append("VIP")
    elif visits >= REGULAR_VISIT_THRESHOLD:
        earned.append("Regular")
    if (customer.no_show_count or 0) >= NO_SHOW_TAG_THRESHOLD:
        earned.append("High No-Show Risk")
    if (customer.cancellation_count or 0) >= CANCELLATION_TAG_THRESHOLD:
        earned.append("High Cancellation Risk")

    existing = list(customer.tags or [])
    added = [tag for tag in earned if tag not in existing]
    if added:
        # Reassign so the JSON column sees the change
        customer.tags = existing + added
    return added


def reliability_score(customer) -> int:
    visits = customer.total_visits or 0
    total = visits + (customer.no_show_count or 0) + (customer.cancellation_count or 0)
    if total == 0:
        return 100
    return round(visits / total * 100)


def risk_level(customer) -> str:
    no_shows = customer.no_show_count or 0
    cancellations = customer.cancellation_count or 0
    if no_shows >= 2 or cancellations >= 3:
        return "High"
    if no_shows >= 1 or cancellations >= 2:
        return "Medium"
    return "Low"


@dataclass
class VisitProfile:
    """What the suggestion rules look at, gathered from the database"""
    total_visits: int
    no_show_count: int
    cancellation_count: int
    existing_tags: Sequence[str]
    # (start_time, party_size, status, notes) of past reservations, newest first
    history: Sequence[Any] = ()

    @classmethod
    def from_customer(cls, customer, reservations: Sequence[Any] = ()) -> "VisitProfile":
        return cls(
            total_visits=customer.total_visits or 0,
            no_show_count=customer.no_show_count or 0,
            cancellation_count=customer.cancellation_count or 0,
            existing_tags=list(customer.tags or []),
            history=sorted(reservations, key=lambda r: r.start_time, reverse=True),
        )

    @property
    def completed(self) -> List[Any]:
        return [r for r in self.history if r.status in ("seated", "finished")]

    @property
    def average_party_size(self) -> Optional[float]:
        visits = self.completed
        if not visits:
            return None
        return sum(r.party_size for r in visits) / len(visits)

    def share_on(self, days) -> float:
        visits = self.completed
        if len(visits) < 3:
            return 0.0
        return sum(1 for r in visits if r.start_time.weekday() in days) / len(visits)

    def mentions(self, keyword: str) -> bool:
        return any(keyword in (r.notes or "").lower() for r in self.history)


@dataclass(frozen=True)
class TagRule:
    description: str
    criteria: str
    applies: Callable[[VisitProfile], bool]


TAG_RULES: Dict[str, TagRule] = {
    "VIP": TagRule("High-value frequent customer", "15+ visits", lambda p: p.total_visits >= 15),
    "Regular": TagRule(
        "Comes in frequently", "5-14 visits", lambda p: 5 <= p.total_visits < 15
    ),
    "NewCustomer": TagRule("First-time guest", "First visit", lambda p: p.total_visits == 1),
    "HighCancellationRisk": TagRule(
        "History of cancellations", "2+ cancellations", lambda p: p.cancellation_count >= 2
    ),
    "NoShowRisk": TagRule(
        "Has missed reservations before", "1+ no-shows", lambda p: p.no_show_count >= 1
    ),
    "Reliable": TagRule(
        "Always shows up",
        "5+ visits, 0 no-shows",
        lambda p: p.total_visits >= 5 and p.no_show_count == 0,
    ),
    "WeekendWarrior": TagRule(
        "Prefers weekend dining",
        "70%+ weekend visits",
        lambda p: p.share_on(WEEKEND_DAYS) >= 0.7,
    ),
    "WeekdayRegular": TagRule(
        "Prefers weekday dining",
        "70%+ weekday visits",
        lambda p: p.share_on(set(range(7)) - WEEKEND_DAYS) >= 0.7,
    ),
    "LargePartyOrganizer": TagRule(
        "Brings big groups",
        "Average party 6+",
        lambda p: p.average_party_size is not None and p.average_party_size >= 6,
    ),
    "IntimateDiner": TagRule(
        "Prefers small tables",
        "Average party 2 or less",
        lambda p: (
            p.average_party_size is not None
            and p.average_party_size <= 2
            and p.total_visits >= 3
        ),
    ),
    "AnniversaryRegular": TagRule(
        "Celebrates anniversaries here",
        "Celebrated anniversary here",
        lambda p: p.mentions("anniversary"),
    ),
    "BirthdayCelebrator": TagRule(
        "Celebrates birthdays here",
        "Celebrated birthday here",
        lambda p: p.mentions("birthday"),
    ),
}

INSIGHTS = {
    "VIP": ["VIP guest - offer a complimentary appetizer or dessert",
            "Consider offering preferred seating"],
    "HighCancellationRisk": ["High cancellation risk - send a reminder 24h before",
                             "Consider calling to confirm the reservation"],
    "NoShowRisk": ["No-show history - may require a deposit for large parties"],
    "LargePartyOrganizer": ["Brings large groups - ensure adequate staffing"],
    "AnniversaryRegular": ["Special occasion guest - prepare a celebration dessert"],
    "BirthdayCelebrator": ["Special occasion guest - prepare a celebration dessert"],
}


@dataclass(frozen=True)
class SuggestedTag:
    tag: str
    description: str
    criteria: str
    confidence: int


def _confidence(profile: VisitProfile, tag: str, now: datetime) -> int:
    score = 80
    if profile.total_visits >= 10:
        score += 10
    elif profile.total_visits >= 5:
        score += 5
    elif profile.total_visits < 3:
        score -= 10

    if profile.history:
        days_since = (now - profile.history[0].start_time).days
        if days_since < 30:
            score += 5
        elif days_since > 90:
            score -= 5

    if "Risk" in tag and profile.total_visits >= 5:
        score += 10
    return min(100, max(0, score))


def suggest_tags(profile: VisitProfile, now: datetime) -> List[SuggestedTag]:
    """Rules that match and are not already on the customer, most confident first"""
    suggestions = [
        SuggestedTag(tag, rule.description, rule.criteria, _confidence(profile, tag, now))
        for tag, rule in TAG_RULES.items()
        if tag not in profile.existing_tags and rule.applies(profile)
    ]
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


def insights_for(tags: Sequence[str]) -> List[str]:
    insights: List[str] = []
    for tag in tags:
        for line in INSIGHTS.get(tag, []):
            if line not in insights:
                insights.append(line)
    return insights
