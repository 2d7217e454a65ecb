"""Tests for restaurant scoping and isolation"""

import pytest
from datetime import datetime
from httpx import AsyncClient

from tablemind.models.table import DiningTable
from tablemind.scheduling.service import SchedulingService


@pytest.fixture
async def other_booking(test_db, other_restaurant):
    """A table and a reservation that belong to the other restaurant"""
    table = DiningTable(restaurant_id=other_restaurant.id, name="X1", capacity=4)
    test_db.add(table)
    await test_db.commit()

    scheduler = SchedulingService(test_db, other_restaurant, now=datetime(2099, 6, 15, 12, 0))
    booking = await scheduler.create(
        table.id, datetime(2099, 6, 15, 19, 0), customer_name="Eve", party_size=2
    )
    return {
        "restaurant_id": other_restaurant.id,
        "table_id": table.id,
        "reservation_id": booking.reservation.id,
    }


@pytest.mark.asyncio
async def test_other_restaurant_is_forbidden(test_restaurant, other_booking, authenticated_client: AsyncClient):
    """Staff of one restaurant cannot reach another restaurant's routes"""
    restaurant_id = other_booking["restaurant_id"]

    response = await authenticated_client.get(f"/restaurants/{restaurant_id}/tables")
    assert response.status_code == 403

    response = await authenticated_client.get(
        f"/restaurants/{restaurant_id}/reservations", params={"date": "2099-06-15"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_foreign_ids_are_not_found(test_restaurant, test_tables, other_booking, authenticated_client: AsyncClient):
    """Ids from another restaurant look like they do not exist"""
    restaurant_id = test_restaurant.id

    response = await authenticated_client.get(
        f"/restaurants/{restaurant_id}/reservations/{other_booking['reservation_id']}"
    )
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = await authenticated_client.post(
        f"/restaurants/{restaurant_id}/reservations",
        json={
            "table_id": str(other_booking["table_id"]),
            "start_time": "2099-06-15T20:00:00",
            "customer_name": "Mallory",
            "party_size": 2,
        },
    )
    assert response.status_code == 404

    response = await authenticated_client.post(
        f"/restaurants/{restaurant_id}/reservations/{other_booking['reservation_id']}/transition",
        json={"action": "cancel"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_day_view_is_scoped(test_restaurant, test_tables, other_booking, authenticated_client: AsyncClient):
    """The other restaurant's booking never shows up"""
    response = await authenticated_client.get(
        f"/restaurants/{test_restaurant.id}/reservations", params={"date": "2099-06-15"}
    )
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_super_admin_reaches_any_restaurant(other_booking, admin_client: AsyncClient):
    response = await admin_client.get(
        f"/restaurants/{other_booking['restaurant_id']}/reservations/{other_booking['reservation_id']}"
    )
    assert response.status_code == 200
    assert response.json()["customer_name"] == "Eve"


@pytest.mark.asyncio
async def test_requires_authentication(test_restaurant, client: AsyncClient):
    response = await client.get(f"/restaurants/{test_restaurant.id}/tables")
    assert response.status_code == 401
