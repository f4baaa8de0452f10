"""
Tests for the Jobs API.

Tests cover:
- Authentication and admin-only routes
- Draft creation and moderation over HTTP
- Error mapping (400/403/404/409)
- Job detail with full or masked applicants
- Rate visibility for anonymous viewers
- Applying and favorites
"""
import pytest
import uuid
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job import JobStatus
from app.services import applications, job_lifecycle

from tests.conftest import job_data, login


def create_payload(category, skills=()):
    return {
        "title": "Landing page",
        "description": "One page website for a bakery.",
        "category_id": category.id,
        "billing_type": "FIXED",
        "rate": 2500,
        "experience_level": "SENIOR",
        "project_type": "ONE_TIME",
        "offer_days": 14,
        "skill_ids": [skill.id for skill in skills],
        "new_skill_names": ["Webflow"],
    }


# ============================================================
# AUTH TESTS
# ============================================================

@pytest.mark.asyncio
async def test_create_requires_login(async_client: AsyncClient, category):
    response = await async_client.post("/api/jobs/", json=create_payload(category))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_pending_requires_admin(async_client: AsyncClient, client_user):
    login(async_client, client_user)
    response = await async_client.get("/api/jobs/pending")
    assert response.status_code == 403


# ============================================================
# CREATE / MODERATION TESTS
# ============================================================

@pytest.mark.asyncio
async def test_create_job(async_client: AsyncClient, client_user, category, logo_skill):
    login(async_client, client_user)

    response = await async_client.post("/api/jobs/", json=create_payload(category, [logo_skill]))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == JobStatus.DRAFT.value
    assert data["author_id"] == str(client_user.id)
    assert data["deadline"] is not None
    assert sorted(skill["name"] for skill in data["skills"]) == ["Logo design", "Webflow"]


@pytest.mark.asyncio
async def test_create_job_validation_error(async_client: AsyncClient, client_user, category):
    login(async_client, client_user)
    payload = create_payload(category)
    payload["offer_days"] = 3

    response = await async_client.post("/api/jobs/", json=payload)

    assert response.status_code == 400
    assert "offer_days" in response.json()["detail"]


@pytest.mark.asyncio
async def test_freelancer_cannot_create_job(async_client: AsyncClient, freelancer, category):
    login(async_client, freelancer)
    response = await async_client.post("/api/jobs/", json=create_payload(category))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_moderation_flow(async_client: AsyncClient, draft_job, admin_user, client_user):
    """Reject, edit, then publish over HTTP."""
    login(async_client, admin_user)
    response = await async_client.get("/api/jobs/pending")
    assert [job["id"] for job in response.json()] == [str(draft_job.id)]

    response = await async_client.post(f"/api/jobs/{draft_job.id}/reject", json={"reason": "Add a budget"})
    assert response.status_code == 200
    assert response.json()["status"] == JobStatus.REJECTED.value
    assert response.json()["rejected_reason"] == "Add a budget"

    login(async_client, client_user)
    response = await async_client.patch(f"/api/jobs/{draft_job.id}", json={"rate": 1800})
    assert response.status_code == 200
    assert response.json()["status"] == JobStatus.DRAFT.value
    assert response.json()["rejected_reason"] is None

    response = await async_client.post(f"/api/jobs/{draft_job.id}/publish")
    assert response.status_code == 403

    login(async_client, admin_user)
    response = await async_client.post(f"/api/jobs/{draft_job.id}/publish")
    assert response.status_code == 200
    assert response.json()["status"] == JobStatus.PUBLISHED.value

    response = await async_client.post(f"/api/jobs/{draft_job.id}/publish")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_close_job(async_client: AsyncClient, published_job, client_user):
    login(async_client, client_user)

    response = await async_client.post(f"/api/jobs/{published_job.id}/close")
    assert response.status_code == 200
    assert response.json()["closed_at"] is not None

    response = await async_client.post(f"/api/jobs/{published_job.id}/close")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_unknown_job(async_client: AsyncClient, client_user):
    login(async_client, client_user)
    response = await async_client.get(f"/api/jobs/{uuid.uuid4()}")
    assert response.status_code == 404


# ============================================================
# DETAIL TESTS
# ============================================================

@pytest.mark.asyncio
async def test_detail_masks_applicants_for_public(
    async_client: AsyncClient, db: AsyncSession, published_job, freelancer, client_user
):
    await applications.apply_to_job(db, published_job.id, freelancer, "I can start tomorrow")

    response = await async_client.get(f"/api/jobs/{published_job.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["application_count"] == 1
    assert data["applications"][0] == {
        "kind": "masked",
        "display_name": "Jan K.",
        "initials": "JK",
        "message": None,
        "created_at": data["applications"][0]["created_at"],
    }
    assert data["job"]["rate"] is None

    login(async_client, client_user)
    response = await async_client.get(f"/api/jobs/{published_job.id}")
    data = response.json()
    assert data["applications"][0]["kind"] == "full"
    assert data["applications"][0]["email"] == freelancer.email
    assert data["applications"][0]["message"] == "I can start tomorrow"
    assert data["job"]["rate"] == 1500
    assert data["current_user_applied"] is False

    login(async_client, freelancer)
    response = await async_client.get(f"/api/jobs/{published_job.id}")
    data = response.json()
    assert data["current_user_applied"] is True
    assert data["applications"][0]["kind"] == "masked"
    assert data["applications"][0]["message"] == "I can start tomorrow"


@pytest.mark.asyncio
async def test_preview_link_shows_ownerless_draft(async_client: AsyncClient, db: AsyncSession, category):
    job, preview_hash = await job_lifecycle.create_ownerless_draft(db, job_data(category))

    response = await async_client.get(f"/api/jobs/{job.id}")
    assert response.status_code == 404

    response = await async_client.get(f"/api/jobs/{job.id}", params={"preview": preview_hash})
    assert response.status_code == 200
    assert response.json()["job"]["rate"] == 1500


# ============================================================
# APPLY / FAVORITE TESTS
# ============================================================

@pytest.mark.asyncio
async def test_apply(async_client: AsyncClient, published_job, freelancer, client_user, outbox):
    login(async_client, freelancer)

    response = await async_client.post(f"/api/jobs/{published_job.id}/apply", json={"message": " Hi "})

    assert response.status_code == 200
    assert response.json()["message"] == "Hi"
    assert len(outbox.to(client_user.email)) == 1


@pytest.mark.asyncio
async def test_apply_message_too_long(async_client: AsyncClient, published_job, freelancer):
    login(async_client, freelancer)
    response = await async_client.post(
        f"/api/jobs/{published_job.id}/apply", json={"message": "x" * 2001}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_apply_to_draft_is_not_found(async_client: AsyncClient, draft_job, freelancer):
    login(async_client, freelancer)
    response = await async_client.post(f"/api/jobs/{draft_job.id}/apply", json={})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_favorites(async_client: AsyncClient, published_job, freelancer):
    login(async_client, freelancer)

    response = await async_client.post(f"/api/jobs/{published_job.id}/favorite")
    assert response.status_code == 201

    response = await async_client.get("/api/jobs/favorites")
    assert [favorite["job_id"] for favorite in response.json()] == [str(published_job.id)]

    response = await async_client.delete(f"/api/jobs/{published_job.id}/favorite")
    assert response.status_code == 204

    response = await async_client.get("/api/jobs/favorites")
    assert response.json() == []
