"""
Freelancer applications to published jobs, and favorites.

Admission rules are enforced here rather than in the UI: account type,
visibility, deadline, capacity (`expected_offers`) and the job's accepted
applicant types.
"""
import logging
from datetime import datetime
from typing import Optional, Union
from uuid import UUID
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import utcnow
from app.database import upsert
from app.models.application import Favorite, JobApplication, MAX_MESSAGE_LENGTH
from app.models.job import ApplicantType, Job, JobStatus
from app.models.user import AccountType, CompanySize, User
from app.schemas.job import FullApplicantView, MaskedApplicantView
from app.services import notifications
from app.services.errors import ForbiddenError, NotFoundError, ValidationError
from app.services.job_lifecycle import get_job_or_404, transition_job
from app.services.names import display_name, initials

logger = logging.getLogger(__name__)

ApplicantView = Union[FullApplicantView, MaskedApplicantView]


def applicant_profile_type(user: User) -> ApplicantType:
    """Derive the applicant type from the company attached to the profile."""
    if not user.company_size:
        return ApplicantType.FREELANCER_NO_B2B
    if user.company_size == CompanySize.FREELANCER.value:
        return ApplicantType.FREELANCER_B2B
    return ApplicantType.COMPANY


def _clean_message(message: Optional[str]) -> Optional[str]:
    if message is None:
        return None
    message = message.strip()
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message cannot be longer than {MAX_MESSAGE_LENGTH} characters")
    return message or None


async def count_applications(db: AsyncSession, job_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(JobApplication).where(JobApplication.job_id == job_id)
    )
    return result.scalar_one()


async def _get_application(db: AsyncSession, job_id: UUID, freelancer_id: UUID) -> Optional[JobApplication]:
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.job_id == job_id, JobApplication.freelancer_id == freelancer_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def has_applied(db: AsyncSession, job_id: UUID, freelancer_id: UUID) -> bool:
    return await _get_application(db, job_id, freelancer_id) is not None


async def apply_to_job(
    db: AsyncSession,
    job_id: UUID,
    freelancer: User,
    message: Optional[str] = None,
    now: Optional[datetime] = None
) -> JobApplication:
    """
    Apply to a published job, or update the message of an earlier application.

    Raises:
        ForbiddenError: Not a freelancer, own job, job closed, deadline passed,
            job full, or applicant type not accepted
        NotFoundError: Job missing or not publicly visible
        ValidationError: Message too long
    """
    now = now or utcnow()
    if freelancer.account_type != AccountType.FREELANCER:
        raise ForbiddenError("Only freelancers can apply to jobs")

    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if job is None or job.status in (JobStatus.DRAFT.value, JobStatus.REJECTED.value):
        raise NotFoundError(f"Job {job_id} not found")
    if job.status == JobStatus.CLOSED.value:
        raise ForbiddenError("This job is closed")
    if job.is_owned_by(freelancer):
        raise ForbiddenError("You cannot apply to your own job")
    if job.deadline is not None and job.deadline <= now:
        raise ForbiddenError("The deadline for this job has passed")

    existing = await _get_application(db, job.id, freelancer.id)
    if existing is None and job.expected_offers is not None:
        if await count_applications(db, job.id) >= job.expected_offers:
            raise ForbiddenError("This job is no longer accepting applications")

    if job.expected_applicant_types:
        applicant_type = applicant_profile_type(freelancer)
        if applicant_type.value not in job.expected_applicant_types:
            raise ForbiddenError(f"This job does not accept applicants of type {applicant_type.value}")

    cleaned = _clean_message(message)
    await db.execute(
        upsert(
            db,
            JobApplication,
            {
                "job_id": job.id,
                "freelancer_id": freelancer.id,
                "message": cleaned,
                "created_at": now,
                "updated_at": now,
            },
            ["job_id", "freelancer_id"],
            {"message": cleaned, "updated_at": now},
        )
    )
    await db.commit()

    application = await _get_application(db, job.id, freelancer.id)
    logger.info(
        f"Freelancer {freelancer.id} {'applied to' if existing is None else 'updated application for'} job {job.id}"
    )

    if existing is None and job.expected_offers is not None:
        if await count_applications(db, job.id) >= job.expected_offers:
            transition_job(job, JobStatus.CLOSED, now)
            await db.commit()
            logger.info(f"Job {job.id} reached {job.expected_offers} applications and was closed")

    try:
        await notifications.on_new_application(db, job, freelancer)
    except Exception:
        logger.exception(f"Failed to notify author of job {job.id} about a new application")

    return application


def build_applicant_view(
    application: JobApplication,
    viewer_is_owner_or_admin: bool,
    lang: str = "pl",
    viewer_id: Optional[UUID] = None
) -> ApplicantView:
    """
    Full details for the job owner and admins, display name and initials for
    everyone else. An applicant viewing their own application also sees their
    message.
    """
    freelancer = application.freelancer
    if viewer_is_owner_or_admin:
        return FullApplicantView(
            application_id=application.id,
            freelancer_id=freelancer.id,
            name=freelancer.name,
            surname=freelancer.surname,
            email=freelancer.email,
            message=application.message,
            created_at=application.created_at,
        )
    return MaskedApplicantView(
        display_name=display_name(freelancer.name, freelancer.surname, lang),
        initials=initials(freelancer.name, freelancer.surname),
        message=application.message if viewer_id == freelancer.id else None,
        created_at=application.created_at,
    )


async def list_applications(
    db: AsyncSession,
    job: Job,
    viewer: Optional[User],
    lang: str = "pl"
) -> list[ApplicantView]:
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.job_id == job.id)
        .order_by(JobApplication.created_at.asc())
    )
    viewer_is_owner_or_admin = viewer is not None and (viewer.is_admin() or job.is_owned_by(viewer))
    return [
        build_applicant_view(application, viewer_is_owner_or_admin, lang, viewer.id if viewer else None)
        for application in result.scalars().all()
    ]


# ============================================================
# Favorites
# ============================================================

async def add_favorite(db: AsyncSession, user: User, job_id: UUID) -> Favorite:
    """Idempotently save a published job."""
    job = await get_job_or_404(db, job_id)
    if job.status != JobStatus.PUBLISHED.value:
        raise NotFoundError(f"Job {job_id} not found")

    await db.execute(
        upsert(
            db,
            Favorite,
            {"user_id": user.id, "job_id": job.id, "created_at": utcnow()},
            ["user_id", "job_id"],
            {},
        )
    )
    await db.commit()

    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user.id, Favorite.job_id == job.id)
    )
    return result.scalar_one()


async def remove_favorite(db: AsyncSession, user: User, job_id: UUID) -> None:
    await db.execute(
        delete(Favorite).where(Favorite.user_id == user.id, Favorite.job_id == job_id)
    )
    await db.commit()


async def list_favorites(db: AsyncSession, user: User) -> list[Favorite]:
    result = await db.execute(
        select(Favorite)
        .where(Favorite.user_id == user.id)
        .order_by(Favorite.created_at.desc())
    )
    return list(result.scalars().all())


async def is_favorite(db: AsyncSession, user: Optional[User], job_id: UUID) -> bool:
    if user is None:
        return False
    result = await db.execute(
        select(Favorite.id).where(Favorite.user_id == user.id, Favorite.job_id == job_id)
    )
    return result.first() is not None
