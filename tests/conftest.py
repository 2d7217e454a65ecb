"""Test configuration and fixtures"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from uuid import uuid4

from tablemind.main import app
from tablemind.database import Base, get_db
from tablemind.models.restaurant import Restaurant, RestaurantSettings
from tablemind.models.table import DiningTable
from tablemind.models.user import User, UserRole
from tablemind.api.auth import create_access_token, get_password_hash


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _restaurant(db, name: str, **settings) -> Restaurant:
    restaurant = Restaurant(
        id=uuid4(),
        name=name,
        timezone="America/New_York",
        settings=RestaurantSettings(address="1 Test St", **settings),
    )
    db.add(restaurant)
    await db.commit()
    return restaurant


@pytest.fixture
async def test_restaurant(test_db):
    """Create a test restaurant with default scheduling settings"""
    return await _restaurant(test_db, "Test Restaurant")


@pytest.fixture
async def other_restaurant(test_db):
    """A second tenant"""
    return await _restaurant(test_db, "Other Restaurant")


@pytest.fixture
async def test_tables(test_db, test_restaurant):
    """Three tables: T1 seats 4, T2 seats 2, T3 seats 6"""
    tables = [
        DiningTable(restaurant_id=test_restaurant.id, name="T1", capacity=4, shape="square"),
        DiningTable(restaurant_id=test_restaurant.id, name="T2", capacity=2, shape="round"),
        DiningTable(restaurant_id=test_restaurant.id, name="T3", capacity=6, shape="rectangle"),
    ]
    test_db.add_all(tables)
    await test_db.commit()
    return tables


@pytest.fixture
async def test_user(test_db, test_restaurant):
    """Create a restaurant admin"""
    user = User(
        id=uuid4(),
        restaurant_id=test_restaurant.id,
        username="manager",
        hashed_password=get_password_hash("testpass123"),
        full_name="Test Manager",
        role=UserRole.RESTAURANT_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def test_staff_user(test_db, test_restaurant):
    """Create a host with staff role"""
    user = User(
        id=uuid4(),
        restaurant_id=test_restaurant.id,
        username="host",
        hashed_password=get_password_hash("hostpass123"),
        full_name="Test Host",
        role=UserRole.STAFF,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def test_admin_user(test_db):
    """Create a super admin user"""
    user = User(
        id=uuid4(),
        username="admin",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.SUPER_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, test_user):
    """Client acting as the restaurant admin"""
    token = create_access_token(test_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client


@pytest.fixture
async def staff_client(client, test_staff_user):
    """Client acting as a host"""
    token = create_access_token(test_staff_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Client acting as the super admin"""
    token = create_access_token(test_admin_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client
