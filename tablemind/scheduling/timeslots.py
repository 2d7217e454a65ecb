"""Mapping between wall-clock time and the discrete timeline axis.

The axis of a business day starts at ``day_start_hour`` on the business
date and advances in ``slot_minutes`` steps until ``day_end_hour``. An end
hour at or before the start hour means the axis runs past midnight into
the next calendar day; slots after midnight keep counting upward from the
same anchor, they never wrap back to zero.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from tablemind.scheduling.errors import ValidationError

MINUTES_PER_DAY = 24 * 60


def to_slot(
    timestamp: datetime,
    day_start_hour: int = 12,
    slot_minutes: int = 15,
    business_date: Optional[date] = None,
) -> int:
    """Slot index of ``timestamp`` on the axis anchored at ``business_date``.

    The anchor defaults to the timestamp's own calendar date. Times that are
    not on the grid are floored to the slot containing them.
    """
    anchor = datetime.combine(business_date or timestamp.date(), time(day_start_hour))
    offset = (timestamp - anchor) // timedelta(minutes=1)
    return offset // slot_minutes


def to_timestamp(
    slot: int,
    business_date: date,
    day_start_hour: int = 12,
    slot_minutes: int = 15,
) -> datetime:
    """Wall-clock start of ``slot`` on the axis of ``business_date``"""
    anchor = datetime.combine(business_date, time(day_start_hour))
    return anchor + timedelta(minutes=slot * slot_minutes)


@dataclass(frozen=True)
class SlotGrid:
    """A restaurant's timeline axis configuration"""

    day_start_hour: int = 12
    day_end_hour: int = 0
    slot_minutes: int = 15

    def __post_init__(self):
        if not 0 <= self.day_start_hour < 24 or not 0 <= self.day_end_hour < 24:
            raise ValueError("day hours must be within 0-23")
        if self.slot_minutes <= 0 or MINUTES_PER_DAY % self.slot_minutes:
            raise ValueError("slot_minutes must evenly divide a day")

    @classmethod
    def from_settings(cls, settings) -> "SlotGrid":
        return cls(
            day_start_hour=settings.day_start_hour,
            day_end_hour=settings.day_end_hour,
            slot_minutes=settings.slot_minutes,
        )

    @property
    def crosses_midnight(self) -> bool:
        return self.day_end_hour <= self.day_start_hour

    @property
    def span_minutes(self) -> int:
        span = (self.day_end_hour - self.day_start_hour) * 60
        return span + MINUTES_PER_DAY if span <= 0 else span

    @property
    def slot_count(self) -> int:
        """Number of bookable slots; valid start slots are 0..slot_count-1"""
        return self.span_minutes // self.slot_minutes

    def axis_start(self, business_date: date) -> datetime:
        return datetime.combine(business_date, time(self.day_start_hour))

    def axis_end(self, business_date: date) -> datetime:
        return self.axis_start(business_date) + timedelta(minutes=self.span_minutes)

    def business_date(self, timestamp: datetime) -> date:
        """Business date a timestamp belongs to.

        Early-morning times inside the after-midnight tail of the previous
        day's axis belong to the previous date.
        """
        if (
            self.crosses_midnight
            and timestamp.time() < time(self.day_end_hour)
        ):
            return timestamp.date() - timedelta(days=1)
        return timestamp.date()

    def day_bounds(self, business_date: date) -> Tuple[datetime, datetime]:
        """Range of start times that belong to ``business_date``"""
        rollover = time(self.day_end_hour) if self.crosses_midnight else time(0)
        lower = datetime.combine(business_date, rollover)
        return lower, lower + timedelta(days=1)

    def to_slot(self, timestamp: datetime, business_date: Optional[date] = None) -> int:
        return to_slot(
            timestamp,
            self.day_start_hour,
            self.slot_minutes,
            business_date or self.business_date(timestamp),
        )

    def to_timestamp(self, slot: int, business_date: date) -> datetime:
        return to_timestamp(slot, business_date, self.day_start_hour, self.slot_minutes)

    def duration_slots(self, start: datetime, end: datetime) -> int:
        """Slots covered by [start, end), rounding partial slots up"""
        minutes = (end - start) / timedelta(minutes=1)
        return max(1, math.ceil(minutes / self.slot_minutes))

    def is_aligned(self, timestamp: datetime) -> bool:
        offset = timestamp - self.axis_start(self.business_date(timestamp))
        return offset % timedelta(minutes=self.slot_minutes) == timedelta(0)

    def locate(self, start: datetime, end: datetime) -> Tuple[date, int, int]:
        """Validate an interval against the axis.

        Returns ``(business_date, start_slot, end_slot)`` where ``end_slot``
        is exclusive. Raises ValidationError when the interval starts before
        the axis opens or runs past its end.
        """
        if end <= start:
            raise ValidationError("end_time must be after start_time", ["start_time", "end_time"])

        anchor = self.business_date(start)
        start_slot = self.to_slot(start, anchor)
        if start_slot < 0 or start_slot >= self.slot_count:
            raise ValidationError(
                f"start_time {start:%H:%M} is outside business hours", ["start_time"]
            )
        if end > self.axis_end(anchor):
            raise ValidationError(
                f"end_time {end:%Y-%m-%d %H:%M} runs past closing", ["end_time"]
            )
        return anchor, start_slot, start_slot + self.duration_slots(start, end)

    def label(self, slot: int) -> str:
        moment = self.axis_start(date(2000, 1, 1)) + timedelta(minutes=slot * self.slot_minutes)
        return moment.strftime("%I:%M %p").lstrip("0")

    def labels(self) -> List[str]:
        """Header labels for every slot boundary, closing time included"""
        return [self.label(slot) for slot in range(self.slot_count + 1)]
