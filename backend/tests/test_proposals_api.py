"""
Tests for the Proposals API.

Tests cover:
- Admin-only creation, listing and stats
- Public token lookup, accept and reject
- Error mapping for answered and unknown tokens
"""
import pytest
from httpx import AsyncClient

from tests.conftest import login


def proposal_payload(category, email="lead@example.com"):
    return {
        "email": email,
        "reason": "COLD_OUTREACH",
        "lang": "en",
        "job": {
            "title": "Menu redesign",
            "description": "New menu for a restaurant.",
            "category_id": category.id,
            "billing_type": "FIXED",
            "rate": 900,
            "experience_level": "JUNIOR",
            "project_type": "ONE_TIME",
        },
    }


async def create_proposal(client: AsyncClient, admin_user, category, email="lead@example.com") -> dict:
    login(client, admin_user)
    response = await client.post("/api/proposals/", json=proposal_payload(category, email))
    assert response.status_code == 201
    client.cookies.clear()
    return response.json()


def token_for(outbox, email="lead@example.com") -> str:
    text = outbox.to(email)[-1].text
    return text.split("token=")[1].split("&")[0]


# ============================================================
# ADMIN TESTS
# ============================================================

@pytest.mark.asyncio
async def test_create_requires_admin(async_client: AsyncClient, client_user, category):
    login(async_client, client_user)
    response = await async_client.post("/api/proposals/", json=proposal_payload(category))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_rejects_invalid_email(async_client: AsyncClient, admin_user, category):
    login(async_client, admin_user)
    response = await async_client.post("/api/proposals/", json=proposal_payload(category, email="not-an-email"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_and_stats(async_client: AsyncClient, admin_user, category):
    data = await create_proposal(async_client, admin_user, category)
    assert data["status"] == "PENDING"
    assert "token" not in data

    login(async_client, admin_user)
    response = await async_client.get("/api/proposals/", params={"limit": 10})
    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["items"][0]["email"] == "lead@example.com"

    response = await async_client.get("/api/proposals/stats")
    assert response.json() == {"pending": 1, "accepted": 0, "rejected": 0, "total": 1}


# ============================================================
# PUBLIC TOKEN TESTS
# ============================================================

@pytest.mark.asyncio
async def test_invitee_accepts(async_client: AsyncClient, admin_user, category, outbox):
    """The invitee previews the offer and accepts it without logging in."""
    await create_proposal(async_client, admin_user, category)
    token = token_for(outbox)

    response = await async_client.get(f"/api/proposals/by-token/{token}")
    assert response.status_code == 200
    assert response.json()["title"] == "Menu redesign"

    response = await async_client.post(
        "/api/proposals/accept", json={"token": token, "lang": "en", "terms_accepted": True}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ACCEPTED"
    assert data["account_created"] is True

    response = await async_client.get(f"/api/jobs/{data['job_id']}")
    assert response.json()["job"]["status"] == "PUBLISHED"

    response = await async_client.post(
        "/api/proposals/accept", json={"token": token, "lang": "en", "terms_accepted": True}
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "This link has already been used"


@pytest.mark.asyncio
async def test_accept_without_terms(async_client: AsyncClient, admin_user, category, outbox):
    await create_proposal(async_client, admin_user, category)
    token = token_for(outbox)

    response = await async_client.post("/api/proposals/accept", json={"token": token})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invitee_rejects(async_client: AsyncClient, admin_user, category, outbox):
    await create_proposal(async_client, admin_user, category)
    token = token_for(outbox)

    response = await async_client.post("/api/proposals/reject", json={"token": token, "lang": "pl"})
    assert response.status_code == 200
    assert response.json()["message"] == "Dziękujemy za odpowiedź."

    response = await async_client.post("/api/proposals/reject", json={"token": token})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_unknown_token(async_client: AsyncClient):
    response = await async_client.get("/api/proposals/by-token/unknown")
    assert response.status_code == 404

    response = await async_client.post("/api/proposals/reject", json={"token": "unknown"})
    assert response.status_code == 404
