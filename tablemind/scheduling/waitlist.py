"""Walk-in waitlist queue.

Active entries (waiting, arrived, notified) hold positions 1..n with no
gaps. Leaving the active set, by any route, closes the gap. Ordering is
first come first served unless the restaurant turns on priority ordering,
in which case urgent and VIP parties move ahead of normal ones.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.config import settings
from tablemind.models.waitlist import (
    ACTIVE_WAITLIST_STATUSES,
    WaitlistEntry,
    WaitlistPriority,
    WaitlistStatus,
)
from tablemind.repositories.audit import record_action
from tablemind.repositories.base import TenantRepository
from tablemind.scheduling import lifecycle
from tablemind.scheduling.config import ScheduleConfig
from tablemind.scheduling.errors import NotFoundError, ValidationError
from tablemind.scheduling.service import SchedulingService, unit_of_work

logger = structlog.get_logger()

STATUSES = {s.value for s in WaitlistStatus}
PRIORITIES = {p.value for p in WaitlistPriority}

PRIORITY_BANDS = {
    WaitlistPriority.URGENT.value: 0,
    WaitlistPriority.VIP.value: 1,
    WaitlistPriority.NORMAL.value: 2,
}

# status -> timestamp column stamped when the entry reaches it
_STATUS_TIMESTAMPS = {
    WaitlistStatus.ARRIVED.value: "arrived_at",
    WaitlistStatus.NOTIFIED.value: "notified_at",
    WaitlistStatus.SEATED.value: "seated_at",
    WaitlistStatus.COMPLETED.value: "seated_at",
    WaitlistStatus.LEFT.value: "left_at",
    WaitlistStatus.CANCELLED.value: "left_at",
}

EDITABLE_FIELDS = ("customer_name", "phone", "party_size", "notes", "preferences", "priority")


def estimate_wait(position: int, average_turnover_minutes: int) -> int:
    """Rough wait for the party at ``position``; about half a turn per party ahead"""
    return round(position * average_turnover_minutes * 0.5)


class WaitlistQueue:
    """Queue operations for one restaurant's waitlist"""

    def __init__(
        self,
        db: AsyncSession,
        restaurant,
        actor=None,
        now: Optional[datetime] = None,
    ):
        self.db = db
        self.restaurant = restaurant
        self.restaurant_id: UUID = restaurant.id
        self.actor = actor
        self.config = ScheduleConfig.for_restaurant(restaurant)
        self._now = now
        self.entries = TenantRepository(WaitlistEntry, db, self.restaurant_id)

    def now(self) -> datetime:
        return self._now or self.config.now()

    def _unit_of_work(self, operation: str):
        return unit_of_work(self.db, f"{operation} waitlist entry", restaurant_id=str(self.restaurant_id))

    # ------------------------------------------------------------------ reads

    async def get(self, entry_id: UUID) -> WaitlistEntry:
        entry = await self.entries.get(entry_id)
        if entry is None:
            raise NotFoundError("Waitlist entry")
        return entry

    async def list(self, status: Optional[str] = None) -> List[WaitlistEntry]:
        conditions = []
        if status is not None:
            if status not in STATUSES:
                raise ValidationError(f"Unknown waitlist status: {status}", ["status"])
            conditions.append(WaitlistEntry.status == status)
        return await self.entries.get_all(
            *conditions, order_by=(WaitlistEntry.position, WaitlistEntry.created_at)
        )

    async def list_active(self) -> List[WaitlistEntry]:
        return await self.entries.get_all(
            WaitlistEntry.status.in_(ACTIVE_WAITLIST_STATUSES),
            order_by=(WaitlistEntry.position, WaitlistEntry.created_at),
        )

    # ------------------------------------------------------------ validation

    def _validate(self, data: Dict[str, Any]) -> None:
        errors = []
        if "customer_name" in data and not (data["customer_name"] or "").strip():
            errors.append("customer_name")
        if "party_size" in data:
            size = data["party_size"]
            if size is None or not 1 <= size <= self.config.waitlist_max_party_size:
                errors.append("party_size")
        if "priority" in data and data["priority"] not in PRIORITIES:
            errors.append("priority")
        if "status" in data and data["status"] not in STATUSES:
            errors.append("status")
        if errors:
            raise ValidationError(f"Invalid {', '.join(errors)}", errors)

    # ------------------------------------------------------------- ordering

    def _sort_key(self, entry: WaitlistEntry):
        band = PRIORITY_BANDS.get(entry.priority, 2) if self.config.waitlist_priority_ordering else 0
        return (band, entry.position or 0, entry.created_at or datetime.min)

    async def renumber(self) -> List[WaitlistEntry]:
        """Reassign positions 1..n to active entries and refresh their estimates"""
        active = sorted(await self.list_active(), key=self._sort_key)
        for position, entry in enumerate(active, start=1):
            entry.position = position
            entry.estimated_wait_minutes = estimate_wait(
                position, self.config.average_turnover_minutes
            )
        await self.db.flush()
        return active

    async def recalculate(self) -> List[WaitlistEntry]:
        async with self._unit_of_work("renumber"):
            active = await self.renumber()
        return active

    # ---------------------------------------------------------------- writes

    async def enqueue(
        self,
        customer_name: str,
        party_size: int,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        preferences: Optional[List[str]] = None,
        priority: str = WaitlistPriority.NORMAL.value,
    ) -> WaitlistEntry:
        """Add a party at the back of the queue"""
        self._validate({"customer_name": customer_name, "party_size": party_size, "priority": priority})

        async with self._unit_of_work("add"):
            active = WaitlistEntry.status.in_(ACTIVE_WAITLIST_STATUSES)
            if await self.entries.count(active) >= self.config.max_waitlist_length:
                raise ValidationError(
                    f"Waitlist is full ({self.config.max_waitlist_length} parties)", ["waitlist"]
                )

            result = await self.db.execute(
                select(func.max(WaitlistEntry.position)).where(
                    WaitlistEntry.restaurant_id == self.restaurant_id, active
                )
            )
            position = (result.scalar() or 0) + 1

            entry = await self.entries.create({
                "customer_name": customer_name.strip(),
                "phone": phone,
                "party_size": party_size,
                "notes": notes,
                "preferences": list(preferences or []),
                "priority": priority,
                "status": WaitlistStatus.WAITING.value,
                "position": position,
                "estimated_wait_minutes": estimate_wait(
                    position, self.config.average_turnover_minutes
                ),
                "created_at": self.now(),
            })
            if self.config.waitlist_priority_ordering and priority != WaitlistPriority.NORMAL.value:
                await self.renumber()
            record_action(
                self.db, self.restaurant_id, "waitlist.add", "waitlist", entry.id,
                {"position": entry.position, "party_size": party_size}, actor=self.actor,
            )

        logger.info(
            "Waitlist entry added",
            restaurant_id=str(self.restaurant_id),
            entry_id=str(entry.id),
            position=entry.position,
            party_size=party_size,
        )
        return entry

    def _apply_status(self, entry: WaitlistEntry, status: str, now: datetime) -> None:
        if status == entry.status:
            return
        entry.status = status
        column = _STATUS_TIMESTAMPS.get(status)
        if column:
            setattr(entry, column, now)
        if column == "seated_at" and entry.created_at is not None:
            entry.actual_wait_minutes = max(
                0, round((now - entry.created_at).total_seconds() / 60)
            )

    async def update(self, entry_id: UUID, **changes) -> WaitlistEntry:
        """Edit an entry; a status change stamps its timestamp"""
        changes = {k: v for k, v in changes.items() if v is not None}
        self._validate(changes)
        now = self.now()

        async with self._unit_of_work("update"):
            entry = await self.entries.get(entry_id, for_update=True)
            if entry is None:
                raise NotFoundError("Waitlist entry")
            was_active = entry.status in ACTIVE_WAITLIST_STATUSES
            priority_changed = "priority" in changes and changes["priority"] != entry.priority

            for name in EDITABLE_FIELDS:
                if name in changes:
                    value = changes[name]
                    if name == "preferences":
                        value = list(value)
                    elif name == "customer_name":
                        value = value.strip()
                    setattr(entry, name, value)

            if "status" in changes:
                if not was_active and changes["status"] in ACTIVE_WAITLIST_STATUSES:
                    raise ValidationError("A closed waitlist entry cannot rejoin the queue", ["status"])
                self._apply_status(entry, changes["status"], now)

            left_queue = was_active and entry.status not in ACTIVE_WAITLIST_STATUSES
            if left_queue or (priority_changed and self.config.waitlist_priority_ordering):
                await self.renumber()

            record_action(
                self.db, self.restaurant_id, "waitlist.update", "waitlist", entry.id,
                {k: v for k, v in changes.items() if k != "phone"}, actor=self.actor,
            )

        logger.info(
            "Waitlist entry updated",
            restaurant_id=str(self.restaurant_id),
            entry_id=str(entry.id),
            status=entry.status,
        )
        return entry

    async def remove(self, entry_id: UUID) -> None:
        """Hard delete; the queue closes up behind it"""
        async with self._unit_of_work("remove"):
            entry = await self.entries.get(entry_id, for_update=True)
            if entry is None:
                raise NotFoundError("Waitlist entry")
            was_active = entry.status in ACTIVE_WAITLIST_STATUSES
            await self.entries.delete(entry)
            if was_active:
                await self.renumber()
            record_action(
                self.db, self.restaurant_id, "waitlist.remove", "waitlist", entry_id,
                actor=self.actor,
            )

        logger.info("Waitlist entry removed", restaurant_id=str(self.restaurant_id), entry_id=str(entry_id))

    async def seat(
        self,
        entry_id: UUID,
        table_id: UUID,
        duration_minutes: Optional[int] = None,
    ) -> WaitlistEntry:
        """Book the table from now, seat the party and close the entry"""
        entry = await self.get(entry_id)
        if entry.status not in ACTIVE_WAITLIST_STATUSES:
            raise ValidationError(f"A {entry.status} party cannot be seated", ["status"])
        now = self.now()
        scheduler = SchedulingService(self.db, self.restaurant, actor=self.actor, now=now, config=self.config)

        end_time = None
        if duration_minutes is None:
            # Late walk-ins get whatever is left of the day
            closing = self.config.grid.axis_end(self.config.grid.business_date(now))
            end_time = min(now + timedelta(minutes=self.config.default_duration_minutes), closing)

        booking = await scheduler.create(
            table_id,
            now,
            customer_name=entry.customer_name,
            party_size=entry.party_size,
            customer_phone=entry.phone,
            end_time=end_time,
            duration_minutes=duration_minutes,
            notes=entry.notes,
            allow_now=True,
        )
        reservation_id = booking.reservation.id
        await scheduler.change_status(reservation_id, lifecycle.SEATED)

        async with self._unit_of_work("seat"):
            entry = await self.entries.get(entry_id, for_update=True)
            if entry is None:
                raise NotFoundError("Waitlist entry")
            entry.table_id = table_id
            entry.reservation_id = reservation_id
            self._apply_status(entry, WaitlistStatus.SEATED.value, now)
            await self.renumber()
            record_action(
                self.db, self.restaurant_id, "waitlist.seat", "waitlist", entry.id,
                {"table_id": str(table_id), "reservation_id": str(reservation_id)},
                actor=self.actor,
            )

        logger.info(
            "Waitlist party seated",
            restaurant_id=str(self.restaurant_id),
            entry_id=str(entry_id),
            reservation_id=str(reservation_id),
            wait_minutes=entry.actual_wait_minutes,
        )
        return entry

    async def purge(self, before: Optional[datetime] = None) -> int:
        """Delete closed entries created before ``before``; returns how many"""
        if before is None:
            before = self.now() - timedelta(days=settings.waitlist_retention_days)
        async with self._unit_of_work("purge"):
            result = await self.db.execute(
                delete(WaitlistEntry).where(
                    WaitlistEntry.restaurant_id == self.restaurant_id,
                    WaitlistEntry.status.notin_(ACTIVE_WAITLIST_STATUSES),
                    WaitlistEntry.created_at < before,
                )
            )
            removed = result.rowcount
        if removed:
            logger.info("Waitlist purged", restaurant_id=str(self.restaurant_id), removed=removed)
        return removed
