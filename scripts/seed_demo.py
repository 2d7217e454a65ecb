#!/usr/bin/env python3
"""
Seed script to create a demo restaurant with tables, staff and bookings
"""

import asyncio
from datetime import datetime, timedelta

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_TABLES = [
    ("T1", 2, "round"),
    ("T2", 2, "round"),
    ("T3", 4, "square"),
    ("T4", 4, "square"),
    ("T5", 6, "rectangle"),
    ("T6", 8, "rectangle"),
    ("B1", 4, "booth"),
    ("B2", 6, "booth"),
]

# (table, hour, minute, name, phone, party size, notes)
DEMO_BOOKINGS = [
    ("T1", 18, 0, "Ana Ruiz", "(555) 201-1001", 2, "Anniversary dinner"),
    ("T3", 18, 30, "Ben Okafor", "555-201-1002", 4, None),
    ("T5", 19, 0, "Chen Wei", "555.201.1003", 6, "Birthday, bring candles"),
    ("B1", 19, 30, "Dara Novak", "+1 555 201 1004", 3, None),
    ("T3", 20, 0, "Eli Haddad", "555 201 1005", 4, "Window if possible"),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from tablemind.database import SessionLocal, engine, Base
    from tablemind.models.restaurant import Restaurant, RestaurantSettings
    from tablemind.models.table import DiningTable
    from tablemind.models.user import User, UserRole
    from tablemind.scheduling.config import local_now
    from tablemind.scheduling.service import SchedulingService

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        result = await db.execute(
            select(Restaurant).where(Restaurant.name == "Harbor Bistro")
        )
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo restaurant...")

        restaurant = Restaurant(
            name="Harbor Bistro",
            timezone="America/New_York",
            settings=RestaurantSettings(
                address="12 Pier Road",
                phone="555-200-0000",
                day_start_hour=12,
                day_end_hour=0,
                slot_minutes=15,
            ),
        )
        db.add(restaurant)
        await db.flush()

        print(f"Created restaurant: {restaurant.name} (ID: {restaurant.id})")

        users = [
            User(
                username="admin",
                hashed_password=pwd_context.hash("admin123"),
                full_name="Platform Admin",
                role=UserRole.SUPER_ADMIN,
            ),
            User(
                restaurant_id=restaurant.id,
                username="manager",
                hashed_password=pwd_context.hash("manager123"),
                full_name="Morgan Lee",
                role=UserRole.RESTAURANT_ADMIN,
            ),
            User(
                restaurant_id=restaurant.id,
                username="host",
                hashed_password=pwd_context.hash("host123"),
                full_name="Sam Patel",
                role=UserRole.STAFF,
            ),
        ]
        db.add_all(users)

        tables = {}
        for name, capacity, shape in DEMO_TABLES:
            table = DiningTable(
                restaurant_id=restaurant.id, name=name, capacity=capacity, shape=shape
            )
            db.add(table)
            tables[name] = table
        await db.commit()

        print(f"Created {len(tables)} tables")

        # Book tomorrow evening through the scheduler so every rule applies
        scheduler = SchedulingService(db, restaurant)
        tomorrow = local_now(restaurant.timezone).date() + timedelta(days=1)
        for table_name, hour, minute, name, phone, party_size, notes in DEMO_BOOKINGS:
            await scheduler.create(
                tables[table_name].id,
                datetime.combine(tomorrow, datetime.min.time()) + timedelta(hours=hour, minutes=minute),
                customer_name=name,
                customer_phone=phone,
                party_size=party_size,
                notes=notes,
            )

        print(f"""
Demo data created successfully!

Restaurant: Harbor Bistro
  ID: {restaurant.id}

Users:
  Super Admin:
    Username: admin
    Password: admin123

  Restaurant Admin:
    Username: manager
    Password: manager123

  Host:
    Username: host
    Password: host123

Reservations: {len(DEMO_BOOKINGS)} booked for {tomorrow}
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
