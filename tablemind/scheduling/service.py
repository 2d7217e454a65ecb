"""Reservation scheduling façade.

Every write follows the same shape: validate input, lock the target table
row, re-read the active reservations that could overlap, run the pure
availability check, write, commit. The table-row lock serializes
concurrent bookings for one table; the database exclusion constraint on
active intervals is the backstop if anything slips past it.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tablemind.models.customer import Customer
from tablemind.models.reservation import Reservation, ACTIVE_STATUSES
from tablemind.models.table import DiningTable
from tablemind.repositories.audit import record_action
from tablemind.repositories.base import TenantRepository
from tablemind.scheduling import lifecycle, tagging
from tablemind.scheduling.availability import Availability, check_availability, find_conflict
from tablemind.scheduling.config import ScheduleConfig
from tablemind.scheduling.errors import (
    ConflictError,
    NotFoundError,
    PastTimeError,
    SchedulingError,
    StorageError,
    ValidationError,
)
from tablemind.scheduling.phone import best_match, mask_phone, normalize_phone

logger = structlog.get_logger()


@dataclass
class Booking:
    """Result of a create or move"""
    reservation: Reservation
    warnings: List[str] = field(default_factory=list)
    replayed: bool = False


@dataclass
class TableAvailability:
    table: DiningTable
    availability: Availability
    suitable: bool


@dataclass
class Placement:
    """A reservation positioned on the timeline axis"""
    reservation: Reservation
    start_slot: int
    duration_slots: int


@dataclass
class Timeline:
    business_date: date
    slot_minutes: int
    labels: List[str]
    tables: List[DiningTable]
    placements: List[Placement]


@dataclass
class TransitionOutcome:
    reservation: Reservation
    transition: lifecycle.Transition
    message: str


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str, **context):
    """Commit on success; roll back and translate database failures"""
    try:
        yield
        await db.commit()
    except SchedulingError:
        await db.rollback()
        raise
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Integrity violation", operation=operation, error=str(exc.orig), **context)
        raise ConflictError(
            "The record was changed by a concurrent request; reload and retry"
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Storage failure", operation=operation, error=str(exc), **context)
        raise StorageError(f"Could not {operation}; please retry") from exc


def capacity_warnings(table: DiningTable, party_size: int) -> List[str]:
    if party_size > table.capacity:
        return [f"Party of {party_size} exceeds {table.name} capacity of {table.capacity}"]
    return []


class SchedulingService:
    """Create, move, edit and transition reservations for one restaurant"""

    def __init__(
        self,
        db: AsyncSession,
        restaurant,
        actor=None,
        now: Optional[datetime] = None,
        config: Optional[ScheduleConfig] = None,
    ):
        self.db = db
        self.restaurant = restaurant
        self.restaurant_id: UUID = restaurant.id
        self.actor = actor
        self.config = config or ScheduleConfig.for_restaurant(restaurant)
        self._now = now

        self.reservations = TenantRepository(Reservation, db, self.restaurant_id)
        self.tables = TenantRepository(DiningTable, db, self.restaurant_id)
        self.customers = TenantRepository(Customer, db, self.restaurant_id)

    @property
    def grid(self):
        return self.config.grid

    def now(self) -> datetime:
        return self._now or self.config.now()

    def _unit_of_work(self, operation: str):
        return unit_of_work(self.db, f"{operation} reservation", restaurant_id=str(self.restaurant_id))

    # ------------------------------------------------------------------ reads

    async def get(self, reservation_id: UUID, for_update: bool = False) -> Reservation:
        try:
            reservation = await self.reservations.get(reservation_id, for_update=for_update)
        except SQLAlchemyError as exc:
            raise StorageError("Could not load reservation") from exc
        if reservation is None:
            raise NotFoundError("Reservation")
        return reservation

    async def get_table(self, table_id: UUID, for_update: bool = False) -> DiningTable:
        table = await self.tables.get(table_id, for_update=for_update)
        if table is None:
            raise NotFoundError("Table")
        return table

    async def list_for_day(self, business_date: date) -> List[Reservation]:
        lower, upper = self.grid.day_bounds(business_date)
        query = (
            self.reservations.query()
            .where(Reservation.start_time >= lower, Reservation.start_time < upper)
            .options(selectinload(Reservation.customer))
            .order_by(Reservation.start_time)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            raise StorageError("Could not load reservations") from exc
        return list(result.scalars().all())

    async def timeline(self, business_date: date) -> Timeline:
        """Tables, slot labels and every reservation of the day placed on the axis"""
        tables = await self.tables.get_all(order_by=DiningTable.name)
        placements = []
        for reservation in await self.list_for_day(business_date):
            start_slot = self.grid.to_slot(reservation.start_time, business_date)
            placements.append(Placement(
                reservation=reservation,
                start_slot=start_slot,
                duration_slots=self.grid.duration_slots(reservation.start_time, reservation.end_time),
            ))
        return Timeline(
            business_date=business_date,
            slot_minutes=self.grid.slot_minutes,
            labels=self.grid.labels(),
            tables=tables,
            placements=placements,
        )

    async def _overlapping(self, start: datetime, end: datetime, table_id=None) -> List[Reservation]:
        conditions = [
            Reservation.status.in_(ACTIVE_STATUSES),
            Reservation.start_time < end,
            Reservation.end_time > start,
        ]
        if table_id is not None:
            conditions.append(Reservation.table_id == table_id)
        return await self.reservations.get_all(*conditions, order_by=Reservation.start_time)

    async def _ensure_free(self, table_id, start, end, exclude_reservation_id=None) -> None:
        candidates = await self._overlapping(start, end, table_id)
        conflict = find_conflict(table_id, start, end, candidates, exclude_reservation_id)
        if conflict is not None:
            logger.warning(
                "Reservation conflict",
                restaurant_id=str(self.restaurant_id),
                table_id=str(table_id),
                conflicting_reservation_id=str(conflict.id),
            )
            raise ConflictError.for_reservation(conflict)

    async def availability(
        self,
        business_date: date,
        start_slot: int,
        duration_slots: int,
        party_size: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[TableAvailability]:
        """Advisory per-table availability for a candidate slot range"""
        if start_slot < 0 or duration_slots < 1 or start_slot + duration_slots > self.grid.slot_count:
            raise ValidationError(
                "Slot range is outside the timeline", ["start_slot", "duration_slots"]
            )
        start = self.grid.to_timestamp(start_slot, business_date)
        end = self.grid.to_timestamp(start_slot + duration_slots, business_date)

        tables = await self.tables.get_all(order_by=DiningTable.name)
        reservations = await self._overlapping(start, end)
        return [
            TableAvailability(
                table=table,
                availability=check_availability(
                    table.id,
                    start_slot,
                    duration_slots,
                    reservations,
                    self.grid,
                    business_date,
                    exclude_reservation_id,
                ),
                suitable=party_size is None or table.capacity >= party_size,
            )
            for table in tables
        ]

    # ------------------------------------------------------------ validation

    def _resolve_interval(
        self,
        start_time: datetime,
        end_time: Optional[datetime],
        duration_minutes: Optional[int],
    ) -> Tuple[datetime, datetime]:
        start_time = self.config.to_local(start_time)
        end_time = self.config.to_local(end_time)
        if end_time is None:
            minutes = duration_minutes or self.config.default_duration_minutes
            if minutes <= 0:
                raise ValidationError("duration_minutes must be positive", ["duration_minutes"])
            end_time = start_time + timedelta(minutes=minutes)
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time", ["start_time", "end_time"])
        self.grid.locate(start_time, end_time)
        return start_time, end_time

    def _ensure_not_past(self, start_time: datetime) -> None:
        now = self.now()
        if start_time < now:
            raise PastTimeError(
                f"Cannot book {start_time:%Y-%m-%d %H:%M}; it is already {now:%H:%M}"
            )

    @staticmethod
    def _validate_party(customer_name: Optional[str], party_size: Optional[int]) -> None:
        errors = []
        if customer_name is not None and not customer_name.strip():
            errors.append("customer_name")
        if party_size is not None and party_size < 1:
            errors.append("party_size")
        if errors:
            raise ValidationError(f"Invalid {', '.join(errors)}", errors)

    # ------------------------------------------------------------- customers

    async def _resolve_customer(self, name: str, phone: Optional[str]) -> Optional[Customer]:
        """Find the tenant's customer with this phone, creating one if needed"""
        digits = normalize_phone(phone)
        if not digits:
            return None
        matches = await self.customers.get_all(Customer.phone_digits == digits, limit=1)
        if matches:
            return matches[0]
        logger.info(
            "Creating customer from reservation",
            restaurant_id=str(self.restaurant_id),
            phone=mask_phone(phone),
        )
        return await self.customers.create({
            "name": name,
            "phone": phone,
            "phone_digits": digits,
            "tags": [],
        })

    async def lookup_customer(self, phone: str, min_digits: int = 3) -> Optional[Customer]:
        """Fuzzy phone lookup used while staff type a number"""
        if len(normalize_phone(phone)) < min_digits:
            return None
        customers = await self.customers.get_all(
            Customer.phone_digits.isnot(None), order_by=Customer.created_at
        )
        return best_match(phone, customers, min_digits)

    # ---------------------------------------------------------------- writes

    async def create(
        self,
        table_id: UUID,
        start_time: datetime,
        *,
        customer_name: str,
        party_size: int,
        end_time: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
        customer_phone: Optional[str] = None,
        notes: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        allow_now: bool = False,
    ) -> Booking:
        """Book ``table_id`` for [start_time, end_time)"""
        self._validate_party(customer_name, party_size)
        start_time, end_time = self._resolve_interval(start_time, end_time, duration_minutes)
        if not allow_now:
            self._ensure_not_past(start_time)

        async with self._unit_of_work("create"):
            if idempotency_key:
                existing = await self.reservations.get_all(
                    Reservation.idempotency_key == idempotency_key, limit=1
                )
                if existing:
                    logger.info(
                        "Replaying idempotent reservation create",
                        restaurant_id=str(self.restaurant_id),
                        reservation_id=str(existing[0].id),
                    )
                    return Booking(existing[0], replayed=True)

            table = await self.get_table(table_id, for_update=True)
            await self._ensure_free(table.id, start_time, end_time)

            customer = await self._resolve_customer(customer_name, customer_phone)
            reservation = await self.reservations.create({
                "table_id": table.id,
                "customer_id": customer.id if customer else None,
                "customer_name": customer_name.strip(),
                "customer_phone": customer_phone,
                "party_size": party_size,
                "start_time": start_time,
                "end_time": end_time,
                "status": lifecycle.BOOKED,
                "notes": notes,
                "idempotency_key": idempotency_key,
            })
            record_action(
                self.db, self.restaurant_id, "reservation.create", "reservation", reservation.id,
                {"after": _snapshot(reservation)}, actor=self.actor,
            )

        logger.info(
            "Reservation created",
            restaurant_id=str(self.restaurant_id),
            reservation_id=str(reservation.id),
            table_id=str(table.id),
            start_time=start_time.isoformat(),
            party_size=party_size,
        )
        return Booking(reservation, capacity_warnings(table, party_size))

    async def _apply_move(
        self,
        reservation: Reservation,
        table_id: UUID,
        start_time: datetime,
        end_time: Optional[datetime],
    ) -> DiningTable:
        if reservation.status not in ACTIVE_STATUSES:
            raise ValidationError(
                f"A {reservation.status} reservation cannot be moved", ["status"]
            )
        start_time = self.config.to_local(start_time)
        if end_time is None:
            end_time = start_time + (reservation.end_time - reservation.start_time)
        start_time, end_time = self._resolve_interval(start_time, end_time, None)

        # A seated party may change tables without its (past) start time moving
        keeps_seated_start = (
            reservation.status == lifecycle.SEATED and start_time == reservation.start_time
        )
        if not keeps_seated_start:
            self._ensure_not_past(start_time)

        table = await self.get_table(table_id, for_update=True)
        await self._ensure_free(table.id, start_time, end_time, exclude_reservation_id=reservation.id)

        reservation.table_id = table.id
        reservation.start_time = start_time
        reservation.end_time = end_time
        return table

    async def move(
        self,
        reservation_id: UUID,
        table_id: UUID,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Booking:
        """Move a reservation to another table and/or time, all or nothing"""
        async with self._unit_of_work("move"):
            reservation = await self.get(reservation_id, for_update=True)
            before = _snapshot(reservation)
            table = await self._apply_move(reservation, table_id, start_time, end_time)
            if notes is not None:
                reservation.notes = notes
            record_action(
                self.db, self.restaurant_id, "reservation.move", "reservation", reservation.id,
                {"before": before, "after": _snapshot(reservation)}, actor=self.actor,
            )

        logger.info(
            "Reservation moved",
            restaurant_id=str(self.restaurant_id),
            reservation_id=str(reservation.id),
            table_id=str(table.id),
            start_time=reservation.start_time.isoformat(),
        )
        return Booking(reservation, capacity_warnings(table, reservation.party_size))

    async def update(
        self,
        reservation_id: UUID,
        *,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        party_size: Optional[int] = None,
        notes: Optional[str] = None,
        table_id: Optional[UUID] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> Booking:
        """Edit guest details and optionally the status, in one transaction.

        A table or time change goes through move rules. The status change is
        checked before any field is touched, so a rejected transition leaves
        the reservation as it was.
        """
        self._validate_party(customer_name, party_size)
        now = self.now()

        async with self._unit_of_work("update"):
            reservation = await self.get(reservation_id, for_update=True)
            if status is not None:
                lifecycle.plan(reservation.status, status, reservation.visit_counted)
            before = _snapshot(reservation)

            if party_size is not None:
                reservation.party_size = party_size
            if customer_name is not None:
                reservation.customer_name = customer_name.strip()
            if notes is not None:
                reservation.notes = notes
            if customer_phone is not None and customer_phone != reservation.customer_phone:
                reservation.customer_phone = customer_phone
                customer = await self._resolve_customer(reservation.customer_name, customer_phone)
                reservation.customer_id = customer.id if customer else None

            table = None
            if table_id is not None or start_time is not None or end_time is not None:
                new_start = start_time or reservation.start_time
                new_end = end_time
                if new_end is None and start_time is None:
                    new_end = reservation.end_time
                table = await self._apply_move(
                    reservation, table_id or reservation.table_id, new_start, new_end
                )
            elif reservation.table_id is not None:
                table = await self.tables.get(reservation.table_id)

            record_action(
                self.db, self.restaurant_id, "reservation.update", "reservation", reservation.id,
                {"before": before, "after": _snapshot(reservation)}, actor=self.actor,
            )
            if status is not None:
                await self._transition(reservation, status, now)

        logger.info(
            "Reservation updated",
            restaurant_id=str(self.restaurant_id),
            reservation_id=str(reservation.id),
            status=reservation.status,
        )
        warnings = capacity_warnings(table, reservation.party_size) if table else []
        return Booking(reservation, warnings)

    async def _transition(
        self,
        reservation: Reservation,
        status: str,
        now: datetime,
        arrival_time: Optional[datetime] = None,
    ) -> Tuple[lifecycle.Transition, str]:
        """Status change plus customer side effects, inside the caller's unit of work"""
        transition = lifecycle.apply(reservation, status, now)

        message = f"Reservation {transition.current}"
        if arrival_time is not None:
            lifecycle.record_arrival(reservation, self.config.to_local(arrival_time))
            message = lifecycle.arrival_message(reservation.minutes_early_late)

        if transition.delta and reservation.customer_id is not None:
            customer = await self.customers.get(reservation.customer_id, for_update=True)
            if customer is not None:
                lifecycle.apply_stats(customer, transition.delta, now)
                tagging.apply_auto_tags(customer)

        if transition.changed:
            record_action(
                self.db, self.restaurant_id, "reservation.transition", "reservation",
                reservation.id,
                {"before": {"status": transition.previous}, "after": {"status": transition.current}},
                actor=self.actor,
            )
        return transition, message

    async def change_status(
        self,
        reservation_id: UUID,
        status: str,
        notes: Optional[str] = None,
        arrival_time: Optional[datetime] = None,
    ) -> TransitionOutcome:
        """Apply a lifecycle transition and its customer side effects once"""
        now = self.now()
        async with self._unit_of_work("update status of"):
            reservation = await self.get(reservation_id, for_update=True)
            transition, message = await self._transition(reservation, status, now, arrival_time)
            if notes is not None:
                reservation.notes = notes

        logger.info(
            "Reservation status changed" if transition.changed else "Reservation status unchanged",
            restaurant_id=str(self.restaurant_id),
            reservation_id=str(reservation.id),
            previous=transition.previous,
            status=transition.current,
        )
        return TransitionOutcome(reservation, transition, message)

    async def perform(
        self,
        reservation_id: UUID,
        action: str,
        notes: Optional[str] = None,
        arrival_time: Optional[datetime] = None,
    ) -> TransitionOutcome:
        """Front-of-house action: arrive, seat, finish, no_show or cancel"""
        status = lifecycle.parse_action(action)
        if action == "arrive":
            arrival_time = arrival_time or self.now()
        else:
            arrival_time = None
        return await self.change_status(reservation_id, status, notes, arrival_time)

    async def cancel(self, reservation_id: UUID) -> TransitionOutcome:
        return await self.change_status(reservation_id, lifecycle.CANCELLED)

    async def delete(self, reservation_id: UUID) -> None:
        """Hard delete without touching customer statistics"""
        async with self._unit_of_work("delete"):
            reservation = await self.get(reservation_id, for_update=True)
            record_action(
                self.db, self.restaurant_id, "reservation.delete", "reservation", reservation.id,
                {"before": _snapshot(reservation)}, actor=self.actor,
            )
            await self.reservations.delete(reservation)

        logger.info(
            "Reservation deleted",
            restaurant_id=str(self.restaurant_id),
            reservation_id=str(reservation_id),
        )


def _snapshot(reservation: Reservation) -> dict:
    return {
        "table_id": str(reservation.table_id) if reservation.table_id else None,
        "start_time": reservation.start_time.isoformat(),
        "end_time": reservation.end_time.isoformat(),
        "party_size": reservation.party_size,
        "status": reservation.status,
    }
