"""
Tests for the Notifications API.
"""
import pytest
from httpx import AsyncClient

from tests.conftest import login


@pytest.mark.asyncio
async def test_preferences_require_login(async_client: AsyncClient):
    response = await async_client.get("/api/notifications/preferences")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_and_update_preferences(async_client: AsyncClient, freelancer):
    login(async_client, freelancer)

    response = await async_client.get("/api/notifications/preferences")
    assert response.status_code == 200
    assert len(response.json()) == 3
    assert all(p["enabled"] and p["frequency"] == "INSTANT" for p in response.json())

    response = await async_client.patch(
        "/api/notifications/preferences",
        json={"type": "NEW_JOB_MATCHING_SKILLS", "frequency": "DAILY_DIGEST"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "type": "NEW_JOB_MATCHING_SKILLS",
        "enabled": True,
        "frequency": "DAILY_DIGEST",
    }


@pytest.mark.asyncio
async def test_invalid_preference_type(async_client: AsyncClient, freelancer):
    login(async_client, freelancer)
    response = await async_client.patch(
        "/api/notifications/preferences", json={"type": "SMS", "enabled": False}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_category_follows(async_client: AsyncClient, freelancer, category):
    login(async_client, freelancer)

    response = await async_client.post("/api/notifications/category-follows", json={"category_id": category.id})
    assert response.status_code == 201
    assert response.json()["category_id"] == category.id

    response = await async_client.get("/api/notifications/category-follows")
    assert [follow["category_id"] for follow in response.json()] == [category.id]

    response = await async_client.delete(f"/api/notifications/category-follows/{category.id}")
    assert response.status_code == 204

    response = await async_client.post("/api/notifications/category-follows", json={"category_id": 9999})
    assert response.status_code == 400
