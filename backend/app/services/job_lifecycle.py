"""
State machine for job postings.
ALL job status changes must go through this module.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Tuple
from uuid import UUID
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import utcnow
from app.config import settings
from app.models.catalog import Category, Location, Skill
from app.models.job import (
    BillingType,
    EXPECTED_OFFERS,
    Job,
    JobStatus,
    MAX_SKILLS_PER_JOB,
    OFFER_DAYS,
)
from app.models.user import AccountType, User
from app.schemas.job import JobCreate, JobPatch
from app.services import notifications
from app.services.email import email_service
from app.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

# Configure logger
logger = logging.getLogger(__name__)


# Define allowed status transitions
ALLOWED_TRANSITIONS: Dict[JobStatus, list[JobStatus]] = {
    JobStatus.DRAFT: [
        JobStatus.PUBLISHED,  # Admin approval or accepted proposal
        JobStatus.REJECTED,
        JobStatus.DRAFT,  # Owner edits a draft
    ],
    JobStatus.PUBLISHED: [
        JobStatus.CLOSED,
        JobStatus.DRAFT,  # Any edit forces re-moderation
    ],
    JobStatus.REJECTED: [JobStatus.DRAFT],  # Owner edits and resubmits
    JobStatus.CLOSED: [],  # Terminal state
}


class InvalidTransitionError(ConflictError):
    """Raised when an invalid job status transition is attempted"""
    pass


def can_transition(from_status: JobStatus, to_status: JobStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def transition_job(job: Job, to_status: JobStatus, now: datetime) -> None:
    """
    Move a loaded job to a new status, stamping the matching timestamp.

    The caller owns the transaction and commits.

    Raises:
        InvalidTransitionError: If transition is not allowed
    """
    current_status = JobStatus(job.status)

    if not can_transition(current_status, to_status):
        raise InvalidTransitionError(
            f"Invalid transition from {current_status.value} to {to_status.value}"
        )

    job.status = to_status.value
    job.updated_at = now

    # State-specific updates
    if to_status == JobStatus.PUBLISHED:
        job.published_at = now
    elif to_status == JobStatus.CLOSED:
        job.closed_at = now
    elif to_status == JobStatus.REJECTED:
        job.rejected_at = now
    elif to_status == JobStatus.DRAFT:
        job.rejected_at = None
        job.rejected_reason = None

    logger.info(
        f"Job {job.id} transitioned {current_status.value} -> {to_status.value}",
        extra={"job_id": str(job.id), "from_status": current_status.value, "to_status": to_status.value},
    )


# ============================================================
# Helpers
# ============================================================

async def get_job_or_404(db: AsyncSession, job_id: UUID) -> Job:
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError(f"Job {job_id} not found")
    return job


def compute_deadline(created_at: datetime, offer_days: Optional[int]) -> Optional[datetime]:
    """Deadline is always creation time plus one of OFFER_DAYS."""
    if offer_days is None:
        return None
    if offer_days not in OFFER_DAYS:
        raise ValidationError(f"offer_days must be one of {list(OFFER_DAYS)}")
    return created_at + timedelta(days=offer_days)


def _check_expected_offers(expected_offers: Optional[int]) -> None:
    if expected_offers is not None and expected_offers not in EXPECTED_OFFERS:
        raise ValidationError(f"expected_offers must be one of {list(EXPECTED_OFFERS)}")


def _normalize_currency(currency: str) -> str:
    return currency.strip().upper()[:3]


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise ValidationError(f"Category {category_id} not found")
    return category


async def _get_location(db: AsyncSession, location_id: Optional[int]) -> Optional[Location]:
    if location_id is None:
        return None
    location = await db.get(Location, location_id)
    if location is None:
        raise ValidationError(f"Location {location_id} not found")
    return location


async def resolve_skills(
    db: AsyncSession,
    skill_ids: list[int],
    new_skill_names: list[str]
) -> list[Skill]:
    """
    Resolve existing skill ids plus free-text skill names into Skill rows.

    Names are trimmed and de-duplicated case-insensitively; a name matching
    an existing skill reuses it, otherwise a new skill is created.
    """
    ids = list(dict.fromkeys(skill_ids))
    skills: list[Skill] = []
    if ids:
        result = await db.execute(select(Skill).where(Skill.id.in_(ids)))
        skills = list(result.scalars().all())
        missing = set(ids) - {skill.id for skill in skills}
        if missing:
            raise ValidationError(f"Unknown skill ids: {sorted(missing)}")

    seen = {skill.name.lower() for skill in skills}
    names: list[str] = []
    for raw_name in new_skill_names:
        name = raw_name.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)

    if len(skills) + len(names) > MAX_SKILLS_PER_JOB:
        raise ValidationError(f"A job can have at most {MAX_SKILLS_PER_JOB} skills")

    for name in names:
        result = await db.execute(select(Skill).where(func.lower(Skill.name) == name.lower()))
        skill = result.scalar_one_or_none()
        if skill is None:
            skill = Skill(name=name)
            db.add(skill)
        skills.append(skill)

    return skills


async def _build_draft(
    db: AsyncSession,
    data: JobCreate,
    author: Optional[User],
    now: datetime
) -> Job:
    category = await _get_category(db, data.category_id)
    location = await _get_location(db, data.location_id)
    _check_expected_offers(data.expected_offers)
    deadline = compute_deadline(now, data.offer_days)
    skills = await resolve_skills(db, data.skill_ids, data.new_skill_names)

    hourly = data.billing_type == BillingType.HOURLY
    job = Job(
        title=data.title.strip(),
        description=data.description.strip(),
        category_id=category.id,
        author_id=author.id if author else None,
        status=JobStatus.DRAFT.value,
        language=data.language.value,
        billing_type=data.billing_type.value,
        hours_per_week=data.hours_per_week.value if hourly and data.hours_per_week else None,
        rate=data.rate,
        rate_negotiable=data.rate_negotiable,
        currency=_normalize_currency(data.currency),
        experience_level=data.experience_level.value,
        location_id=location.id if location else None,
        is_remote=data.is_remote,
        project_type=data.project_type.value,
        deadline=deadline,
        expected_offers=data.expected_offers,
        expected_applicant_types=[t.value for t in data.expected_applicant_types],
        created_at=now,
        updated_at=now,
    )
    job.author = author
    job.category = category
    job.location = location
    job.skills = skills
    db.add(job)
    return job


# ============================================================
# Operations
# ============================================================

async def create_draft(
    db: AsyncSession,
    author: User,
    data: JobCreate,
    now: Optional[datetime] = None
) -> Job:
    """
    Create a job draft owned by a client.

    Raises:
        ForbiddenError: Author is not a client
        ValidationError: Unknown category, location or skill, or an invalid enum choice
    """
    now = now or utcnow()
    if author.account_type != AccountType.CLIENT:
        raise ForbiddenError("Only clients can create jobs")

    job = await _build_draft(db, data, author, now)
    await db.commit()

    logger.info(f"Job draft {job.id} created by {author.id}")
    return job


async def create_ownerless_draft(
    db: AsyncSession,
    data: JobCreate,
    now: Optional[datetime] = None,
    commit: bool = True
) -> Tuple[Job, str]:
    """
    Create a draft with no author for the proposal flow.

    Returns the job and its preview hash, which lets an unauthenticated
    invitee view the draft.
    """
    now = now or utcnow()
    job = await _build_draft(db, data, None, now)
    job.preview_hash = secrets.token_hex(16)

    if commit:
        await db.commit()
    else:
        await db.flush()

    logger.info(f"Ownerless job draft {job.id} created")
    return job, job.preview_hash


def preview_matches(job: Job, preview_hash: Optional[str]) -> bool:
    return bool(preview_hash) and job.preview_hash is not None and secrets.compare_digest(preview_hash, job.preview_hash)


async def get_job(
    db: AsyncSession,
    job_id: UUID,
    viewer: Optional[User],
    preview_hash: Optional[str] = None
) -> Job:
    """
    Load a job the viewer is allowed to see.

    Drafts and rejected jobs are visible only to their owner and admins.
    A matching preview hash also opens a draft. Everyone else gets NotFound.
    """
    job = await get_job_or_404(db, job_id)

    if job.status in (JobStatus.PUBLISHED.value, JobStatus.CLOSED.value):
        return job
    if viewer is not None and (viewer.is_admin() or job.is_owned_by(viewer)):
        return job
    if job.status == JobStatus.DRAFT.value and preview_matches(job, preview_hash):
        return job

    raise NotFoundError(f"Job {job_id} not found")


async def notify_job_published(db: AsyncSession, job_id: UUID, now: Optional[datetime] = None) -> None:
    """Run skill matching for a committed publish. Failures never reach the caller."""
    try:
        await notifications.on_job_published(db, job_id, now=now)
    except Exception:
        logger.exception(f"Skill matching failed for published job {job_id}")
        await db.rollback()


async def publish_job(
    db: AsyncSession,
    job_id: UUID,
    actor: Optional[User],
    now: Optional[datetime] = None
) -> Job:
    """
    Approve a draft (admin only), then notify matching freelancers.

    Raises:
        ForbiddenError: Actor is not an admin
        NotFoundError: Job does not exist
        ConflictError: Job has no owner yet, or is not a draft
    """
    now = now or utcnow()
    if actor is None or not actor.is_admin():
        raise ForbiddenError("Only admins can publish jobs")

    job = await get_job_or_404(db, job_id)
    if job.author_id is None:
        raise ConflictError("Job has no owner yet; it is published when its proposal is accepted")

    transition_job(job, JobStatus.PUBLISHED, now)
    await db.commit()

    await notify_job_published(db, job.id, now=now)
    return job


def publish_for_invitation(job: Job, owner: User, now: datetime) -> None:
    """
    Hand an ownerless draft to the invitee and publish it.

    Used by the proposal acceptance flow inside its own transaction; the
    caller commits and then calls notify_job_published.
    """
    if job.author_id is not None and job.author_id != owner.id:
        raise ConflictError(f"Job {job.id} already belongs to another user")

    job.author_id = owner.id
    job.author = owner
    job.preview_hash = None
    transition_job(job, JobStatus.PUBLISHED, now)


async def reject_job(
    db: AsyncSession,
    job_id: UUID,
    actor: Optional[User],
    reason: str,
    now: Optional[datetime] = None
) -> Job:
    """Reject a draft (admin only) and tell the owner what to fix."""
    now = now or utcnow()
    if actor is None or not actor.is_admin():
        raise ForbiddenError("Only admins can reject jobs")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    job = await get_job_or_404(db, job_id)
    transition_job(job, JobStatus.REJECTED, now)
    job.rejected_reason = reason
    await db.commit()

    author = job.author
    if author is not None:
        await email_service.send_template(
            author.email,
            "job-rejected",
            author.language,
            {
                "name": author.name,
                "job_title": job.title,
                "reason": reason,
                "edit_url": f"{settings.get_frontend_url()}/jobs/{job.id}/edit",
            },
        )
    return job


async def close_job(
    db: AsyncSession,
    job_id: UUID,
    actor: Optional[User],
    now: Optional[datetime] = None
) -> Job:
    """
    Close a published job (owner or admin).

    Closing a job that is already closed, or was never published, is a
    Conflict.
    """
    now = now or utcnow()
    job = await get_job_or_404(db, job_id)

    if actor is None or not (actor.is_admin() or job.is_owned_by(actor)):
        raise ForbiddenError("Only the job owner or an admin can close this job")

    transition_job(job, JobStatus.CLOSED, now)
    await db.commit()
    return job


# Patch fields copied as-is; enums are stored by value
_PLAIN_PATCH_FIELDS = (
    "rate",
    "rate_negotiable",
    "is_remote",
    "expected_offers",
)
_ENUM_PATCH_FIELDS = (
    "language",
    "billing_type",
    "hours_per_week",
    "experience_level",
    "project_type",
)


async def update_job(
    db: AsyncSession,
    job_id: UUID,
    actor: User,
    patch: JobPatch,
    now: Optional[datetime] = None
) -> Job:
    """
    Apply an owner's edit. Any edit sends the job back to DRAFT for moderation.

    The deadline is recomputed from the original creation time.

    Raises:
        NotFoundError: Job does not exist
        ForbiddenError: Actor is not the owning client
        InvalidTransitionError: Job is closed
        ValidationError: Unknown references or invalid enum choices
    """
    now = now or utcnow()
    job = await get_job_or_404(db, job_id)

    if not job.is_owned_by(actor):
        raise ForbiddenError("Only the job owner can edit this job")
    if actor.account_type != AccountType.CLIENT:
        raise ForbiddenError("Only clients can edit jobs")
    if not can_transition(JobStatus(job.status), JobStatus.DRAFT):
        raise InvalidTransitionError(f"Job {job.id} is {job.status} and can no longer be edited")

    changes = patch.model_dump(exclude_unset=True)

    if "title" in changes and patch.title is not None:
        job.title = patch.title.strip()
    if "description" in changes and patch.description is not None:
        job.description = patch.description.strip()
    if "category_id" in changes and patch.category_id is not None:
        job.category = await _get_category(db, patch.category_id)
        job.category_id = job.category.id
    if "location_id" in changes:
        job.location = await _get_location(db, patch.location_id)
        job.location_id = patch.location_id
    if "currency" in changes and patch.currency is not None:
        job.currency = _normalize_currency(patch.currency)

    for field in _PLAIN_PATCH_FIELDS:
        if field in changes:
            if field == "expected_offers":
                _check_expected_offers(patch.expected_offers)
            setattr(job, field, getattr(patch, field))
    for field in _ENUM_PATCH_FIELDS:
        if field in changes:
            value = getattr(patch, field)
            if value is None and field != "hours_per_week":
                raise ValidationError(f"{field} cannot be cleared")
            setattr(job, field, value.value if value is not None else None)

    if job.billing_type != BillingType.HOURLY.value:
        job.hours_per_week = None

    if "offer_days" in changes:
        job.deadline = compute_deadline(job.created_at, patch.offer_days)
    if "expected_applicant_types" in changes:
        job.expected_applicant_types = [t.value for t in (patch.expected_applicant_types or [])]

    if "skill_ids" in changes or "new_skill_names" in changes:
        skill_ids = patch.skill_ids if patch.skill_ids is not None else [s.id for s in job.skills]
        job.skills = await resolve_skills(db, skill_ids, patch.new_skill_names or [])

    transition_job(job, JobStatus.DRAFT, now)
    await db.commit()

    logger.info(f"Job {job.id} updated by {actor.id}, awaiting moderation")
    return job


async def list_pending_jobs(db: AsyncSession, actor: Optional[User]) -> list[Job]:
    """Drafts waiting for moderation, oldest first. Ownerless proposal drafts are excluded."""
    if actor is None or not actor.is_admin():
        raise ForbiddenError("Only admins can list pending jobs")

    result = await db.execute(
        select(Job)
        .where(Job.status == JobStatus.DRAFT.value, Job.author_id.is_not(None))
        .order_by(Job.created_at.asc())
    )
    return list(result.scalars().all())


async def auto_close_expired_jobs(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Close published jobs whose deadline has passed. Returns the number closed."""
    now = now or utcnow()
    result = await db.execute(
        update(Job)
        .where(
            Job.status == JobStatus.PUBLISHED.value,
            Job.deadline.is_not(None),
            Job.deadline < now,
        )
        .values(status=JobStatus.CLOSED.value, closed_at=now, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()

    closed = result.rowcount or 0
    if closed:
        logger.info(f"Auto-closed {closed} expired job(s)")
    return closed
