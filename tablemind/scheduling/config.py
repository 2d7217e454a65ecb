"""Effective per-restaurant scheduling configuration and local clock"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from tablemind.config import settings
from tablemind.scheduling.timeslots import SlotGrid


def local_now(timezone: str) -> datetime:
    """Current wall-clock time in ``timezone``, naive like stored reservation times"""
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None, microsecond=0)


@dataclass(frozen=True)
class ScheduleConfig:
    grid: SlotGrid
    timezone: str = "America/New_York"
    default_duration_minutes: int = 90
    no_show_grace_minutes: int = 120
    average_turnover_minutes: int = 25
    waitlist_max_party_size: int = 20
    max_waitlist_length: int = 50
    waitlist_priority_ordering: bool = False

    @classmethod
    def defaults(cls, timezone: str = "America/New_York") -> "ScheduleConfig":
        return cls(
            grid=SlotGrid(settings.day_start_hour, settings.day_end_hour, settings.slot_minutes),
            timezone=timezone,
            default_duration_minutes=settings.default_duration_minutes,
            no_show_grace_minutes=settings.no_show_grace_minutes,
            average_turnover_minutes=settings.average_turnover_minutes,
            waitlist_max_party_size=settings.waitlist_max_party_size,
            max_waitlist_length=settings.max_waitlist_length,
        )

    @classmethod
    def for_restaurant(cls, restaurant) -> "ScheduleConfig":
        """Restaurant settings row if present, service defaults otherwise"""
        row = restaurant.settings
        if row is None:
            return cls.defaults(restaurant.timezone)
        return cls(
            grid=SlotGrid.from_settings(row),
            timezone=restaurant.timezone,
            default_duration_minutes=row.default_duration_minutes,
            no_show_grace_minutes=row.no_show_grace_minutes,
            average_turnover_minutes=row.average_turnover_minutes,
            waitlist_max_party_size=row.waitlist_max_party_size,
            max_waitlist_length=row.max_waitlist_length,
            waitlist_priority_ordering=row.waitlist_priority_ordering,
        )

    def now(self) -> datetime:
        return local_now(self.timezone)

    def to_local(self, timestamp: Optional[datetime]) -> Optional[datetime]:
        """Naive local wall-clock time; aware timestamps are converted first"""
        if timestamp is None or timestamp.tzinfo is None:
            return timestamp
        return timestamp.astimezone(ZoneInfo(self.timezone)).replace(tzinfo=None)
