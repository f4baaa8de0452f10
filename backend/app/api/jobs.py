"""
Jobs API endpoints.
Job drafts, moderation, closing, applications and favorites.
"""
import logging
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.api.auth import get_current_user, get_optional_user, require_admin
from app.services import applications, job_lifecycle
from app.services.email_templates import normalize_language
from app.schemas.job import (
    ApplicationResponse,
    ApplyRequest,
    FavoriteResponse,
    JobCreate,
    JobDetailResponse,
    JobPatch,
    JobRejectRequest,
    JobResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _job_response(job, viewer: Optional[User], preview_hash: Optional[str] = None) -> JobResponse:
    """Anonymous viewers only see the rate through a valid preview link."""
    response = JobResponse.model_validate(job)
    previewing = job_lifecycle.preview_matches(job, preview_hash)
    if viewer is None and not previewing:
        response.rate = None
    return response


@router.post("/", response_model=JobResponse, status_code=201)
async def create_job(
    request: JobCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a job draft. It becomes public once an admin publishes it."""
    job = await job_lifecycle.create_draft(db, current_user, request)
    return job


@router.get("/pending", response_model=list[JobResponse])
async def list_pending_jobs(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Drafts waiting for moderation (admin only)."""
    return await job_lifecycle.list_pending_jobs(db, admin)


@router.get("/favorites", response_model=list[FavoriteResponse])
async def list_favorites(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await applications.list_favorites(db, current_user)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: UUID,
    preview: Optional[str] = Query(None, description="Preview hash from a proposal invitation"),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """
    Get a job with its applicants.

    Owners and admins see full applicant details; everyone else sees
    display names and initials.
    """
    job = await job_lifecycle.get_job(db, job_id, viewer, preview_hash=preview)
    lang = normalize_language(viewer.language if viewer else None)
    views = await applications.list_applications(db, job, viewer, lang)
    return JobDetailResponse(
        job=_job_response(job, viewer, preview),
        application_count=len(views),
        applications=views,
        current_user_applied=viewer is not None and await applications.has_applied(db, job.id, viewer.id),
        is_favorite=await applications.is_favorite(db, viewer, job.id),
    )


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: UUID,
    request: JobPatch,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Edit a job. The job goes back to DRAFT until an admin publishes it again."""
    return await job_lifecycle.update_job(db, job_id, current_user, request)


@router.post("/{job_id}/publish", response_model=JobResponse)
async def publish_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await job_lifecycle.publish_job(db, job_id, current_user)


@router.post("/{job_id}/reject", response_model=JobResponse)
async def reject_job(
    job_id: UUID,
    request: JobRejectRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await job_lifecycle.reject_job(db, job_id, current_user, request.reason)


@router.post("/{job_id}/close", response_model=JobResponse)
async def close_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await job_lifecycle.close_job(db, job_id, current_user)


@router.post("/{job_id}/apply", response_model=ApplicationResponse)
async def apply_to_job(
    job_id: UUID,
    request: ApplyRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Apply to a job. Applying again replaces the message."""
    return await applications.apply_to_job(db, job_id, current_user, request.message)


@router.post("/{job_id}/favorite", response_model=FavoriteResponse, status_code=201)
async def add_favorite(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await applications.add_favorite(db, current_user, job_id)


@router.delete("/{job_id}/favorite", status_code=204)
async def remove_favorite(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await applications.remove_favorite(db, current_user, job_id)
