"""
Notification matching and dispatch.

- Skill matching runs after a job is published and either emails the
  freelancer right away or leaves a pending log for the daily digest.
- Job authors hear about every application to their jobs.
- The worker runs the daily digest and the category newsletter.

Jobs authored by fake accounts and fake recipients are excluded everywhere.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from html import escape
from typing import Optional
from uuid import UUID
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import utcnow
from app.config import settings
from app.database import upsert
from app.models.catalog import Category, Skill
from app.models.job import Job, JobStatus
from app.models.notification import (
    CategoryFollow,
    DEFAULT_ENABLED,
    DEFAULT_FREQUENCY,
    NotificationFrequency,
    NotificationLog,
    NotificationPreference,
    NotificationType,
)
from app.models.user import AccountType, User
from app.services.email import email_service
from app.services.email_templates import normalize_language
from app.services.errors import ValidationError
from app.services.names import display_name

logger = logging.getLogger(__name__)

NEWSLETTER_WINDOW = timedelta(hours=24)


@dataclass
class ResolvedPreference:
    type: NotificationType
    enabled: bool
    frequency: NotificationFrequency


@dataclass
class DigestReport:
    emails_sent: int = 0
    logs_dispatched: int = 0
    logs_skipped: int = 0
    failed_users: int = 0


def job_url(job: Job) -> str:
    return f"{settings.get_frontend_url()}/jobs/{job.id}"


def _resolve(notification_type: NotificationType, row: Optional[NotificationPreference]) -> ResolvedPreference:
    if row is None:
        return ResolvedPreference(notification_type, DEFAULT_ENABLED, DEFAULT_FREQUENCY)
    return ResolvedPreference(notification_type, row.enabled, NotificationFrequency(row.frequency))


async def _preference_rows(
    db: AsyncSession,
    user_ids: list[UUID],
    notification_type: NotificationType
) -> dict[UUID, NotificationPreference]:
    if not user_ids:
        return {}
    result = await db.execute(
        select(NotificationPreference)
        .where(
            NotificationPreference.user_id.in_(user_ids),
            NotificationPreference.type == notification_type.value,
        )
        .execution_options(populate_existing=True)
    )
    return {row.user_id: row for row in result.scalars().all()}


async def resolve_preference(
    db: AsyncSession,
    user_id: UUID,
    notification_type: NotificationType
) -> ResolvedPreference:
    rows = await _preference_rows(db, [user_id], notification_type)
    return _resolve(notification_type, rows.get(user_id))


def _is_excluded_job(job: Optional[Job]) -> bool:
    return job is None or (job.author is not None and job.author.is_fake)


# ============================================================
# Preferences
# ============================================================

async def get_preferences(db: AsyncSession, user: User) -> list[ResolvedPreference]:
    """One entry per notification type, with defaults for missing rows."""
    result = await db.execute(
        select(NotificationPreference)
        .where(NotificationPreference.user_id == user.id)
        .execution_options(populate_existing=True)
    )
    rows = {row.type: row for row in result.scalars().all()}
    return [_resolve(t, rows.get(t.value)) for t in NotificationType]


async def update_preference(
    db: AsyncSession,
    user: User,
    notification_type: NotificationType,
    enabled: Optional[bool] = None,
    frequency: Optional[NotificationFrequency] = None
) -> ResolvedPreference:
    """Upsert one preference; omitted fields keep their current (or default) value."""
    now = utcnow()
    values = {
        "user_id": user.id,
        "type": notification_type.value,
        "enabled": DEFAULT_ENABLED if enabled is None else enabled,
        "frequency": (frequency or DEFAULT_FREQUENCY).value,
        "updated_at": now,
    }
    changed = {"updated_at": now}
    if enabled is not None:
        changed["enabled"] = enabled
    if frequency is not None:
        changed["frequency"] = frequency.value

    await db.execute(upsert(db, NotificationPreference, values, ["user_id", "type"], changed))
    await db.commit()

    return await resolve_preference(db, user.id, notification_type)


# ============================================================
# Category follows
# ============================================================

async def follow_category(db: AsyncSession, user: User, category_id: int) -> CategoryFollow:
    if await db.get(Category, category_id) is None:
        raise ValidationError(f"Category {category_id} not found")

    await db.execute(
        upsert(
            db,
            CategoryFollow,
            {"user_id": user.id, "category_id": category_id, "created_at": utcnow()},
            ["user_id", "category_id"],
            {},
        )
    )
    await db.commit()

    result = await db.execute(
        select(CategoryFollow).where(
            CategoryFollow.user_id == user.id,
            CategoryFollow.category_id == category_id,
        )
    )
    return result.scalar_one()


async def unfollow_category(db: AsyncSession, user: User, category_id: int) -> None:
    await db.execute(
        delete(CategoryFollow).where(
            CategoryFollow.user_id == user.id,
            CategoryFollow.category_id == category_id,
        )
    )
    await db.commit()


async def list_followed_categories(db: AsyncSession, user: User) -> list[CategoryFollow]:
    result = await db.execute(
        select(CategoryFollow)
        .where(CategoryFollow.user_id == user.id)
        .order_by(CategoryFollow.created_at.asc())
    )
    return list(result.scalars().all())


# ============================================================
# Triggers
# ============================================================

async def on_job_published(db: AsyncSession, job_id: UUID, now: Optional[datetime] = None) -> int:
    """
    Match a freshly published job against freelancer skills.

    Each enabled match gets a NotificationLog row; INSTANT users are emailed
    right away, DAILY_DIGEST users wait for the digest. An edited job that
    is published again is matched again.

    Returns:
        Number of matched users (log rows created)
    """
    now = now or utcnow()
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()

    if job is None or job.status != JobStatus.PUBLISHED.value:
        return 0
    if _is_excluded_job(job):
        logger.info(f"Job {job.id} is authored by a fake account, skipping skill matching")
        return 0

    skill_ids = [skill.id for skill in job.skills]
    if not skill_ids:
        return 0

    notification_type = NotificationType.NEW_JOB_MATCHING_SKILLS
    query = select(User).where(
        User.account_type == AccountType.FREELANCER,
        User.is_fake.is_(False),
        User.skills.any(Skill.id.in_(skill_ids)),
    )
    if job.author_id is not None:
        query = query.where(User.id != job.author_id)

    users = list((await db.execute(query)).scalars().all())
    preferences = await _preference_rows(db, [user.id for user in users], notification_type)

    instant: list[User] = []
    matched = 0
    for user in users:
        preference = _resolve(notification_type, preferences.get(user.id))
        if not preference.enabled:
            continue
        is_instant = preference.frequency == NotificationFrequency.INSTANT
        db.add(NotificationLog(
            user=user,
            job=job,
            type=notification_type.value,
            dispatched=is_instant,
            created_at=now,
        ))
        matched += 1
        if is_instant:
            instant.append(user)

    await db.commit()

    for user in instant:
        sent = await email_service.send_template(
            user.email,
            "new-job-matching",
            user.language,
            {"name": user.name, "job_title": job.title, "job_url": job_url(job)},
        )
        if not sent:
            logger.warning(f"Instant job notification for job {job.id} to user {user.id} was not delivered")

    logger.info(
        f"Job {job.id} matched {matched} freelancer(s): "
        f"{len(instant)} instant, {matched - len(instant)} queued for digest"
    )
    return matched


async def on_new_application(db: AsyncSession, job: Job, applicant: User) -> bool:
    """Tell the job author that someone applied. Returns True if an email went out."""
    author = job.author
    if author is None or author.id == applicant.id:
        return False

    preference = await resolve_preference(db, author.id, NotificationType.NEW_APPLICATION_TO_MY_JOB)
    if not preference.enabled:
        return False

    lang = normalize_language(author.language)
    return await email_service.send_template(
        author.email,
        "new-application",
        lang,
        {
            "name": author.name,
            "applicant_name": display_name(applicant.name, applicant.surname, lang),
            "job_title": job.title,
            "job_url": job_url(job),
        },
    )


# ============================================================
# Scheduled jobs
# ============================================================

def _jobs_html(jobs: list[Job]) -> str:
    return "".join(
        f'<li><a href="{escape(job_url(job))}">{escape(job.title)}</a></li>'
        for job in jobs
    )


def _jobs_text(jobs: list[Job]) -> str:
    return "\n".join(f"- {job.title}: {job_url(job)}" for job in jobs)


async def send_daily_digest(db: AsyncSession, now: Optional[datetime] = None) -> DigestReport:
    """
    Email every DAILY_DIGEST user one summary of their pending matches.

    Matches whose job was deleted, is no longer published, or is excluded
    are marked dispatched without an email. Logs of a user whose email
    failed stay pending for the next run.
    """
    now = now or utcnow()
    result = await db.execute(
        select(NotificationLog)
        .where(
            NotificationLog.dispatched.is_(False),
            NotificationLog.type == NotificationType.NEW_JOB_MATCHING_SKILLS.value,
        )
        .order_by(NotificationLog.created_at.asc())
        .execution_options(populate_existing=True)
    )
    logs = list(result.scalars().all())

    report = DigestReport()
    by_user: dict[UUID, list[NotificationLog]] = {}
    for log in logs:
        job = log.job
        if _is_excluded_job(job) or job.status != JobStatus.PUBLISHED.value or log.user.is_fake:
            log.dispatched = True
            report.logs_skipped += 1
            continue
        by_user.setdefault(log.user_id, []).append(log)
    await db.commit()

    for user_logs in by_user.values():
        user = user_logs[0].user
        # A job published twice before the digest runs is listed once
        jobs = list({log.job_id: log.job for log in user_logs}.values())
        sent = await email_service.send_template(
            user.email,
            "daily-digest",
            user.language,
            {
                "name": user.name,
                "count": len(jobs),
                "jobs_html": _jobs_html(jobs),
                "jobs_text": _jobs_text(jobs),
            },
        )
        if not sent:
            report.failed_users += 1
            logger.error(f"Daily digest for user {user.id} was not delivered, will retry next run")
            continue

        for log in user_logs:
            log.dispatched = True
        await db.commit()
        report.emails_sent += 1
        report.logs_dispatched += len(user_logs)

    logger.info(
        f"Daily digest at {now.isoformat()}: {report.emails_sent} email(s), "
        f"{report.logs_dispatched} log(s) dispatched, {report.logs_skipped} stale log(s) skipped"
    )
    return report


async def send_category_newsletter(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Email each category follower the jobs published in their followed
    categories during the last 24 hours. Returns the number of emails sent.
    """
    now = now or utcnow()

    follows = (await db.execute(select(CategoryFollow))).scalars().all()
    categories_by_user: dict[UUID, set[int]] = {}
    for follow in follows:
        categories_by_user.setdefault(follow.user_id, set()).add(follow.category_id)
    if not categories_by_user:
        return 0

    all_category_ids = set().union(*categories_by_user.values())
    result = await db.execute(
        select(Job)
        .where(
            Job.status == JobStatus.PUBLISHED.value,
            Job.published_at >= now - NEWSLETTER_WINDOW,
            Job.category_id.in_(all_category_ids),
        )
        .order_by(Job.published_at.desc())
    )
    recent_jobs = [job for job in result.scalars().all() if not _is_excluded_job(job)]

    user_ids = list(categories_by_user)
    users = {
        user.id: user
        for user in (await db.execute(select(User).where(User.id.in_(user_ids)))).scalars().all()
    }
    preferences = await _preference_rows(db, user_ids, NotificationType.NEW_JOBS_IN_FOLLOWED_CATEGORIES)

    sent = 0
    for user_id, category_ids in categories_by_user.items():
        user = users.get(user_id)
        if user is None or user.is_fake:
            continue
        preference = _resolve(NotificationType.NEW_JOBS_IN_FOLLOWED_CATEGORIES, preferences.get(user_id))
        if not preference.enabled:
            continue

        jobs = [
            job for job in recent_jobs
            if job.category_id in category_ids and job.author_id != user_id
        ]
        if not jobs:
            continue

        delivered = await email_service.send_template(
            user.email,
            "category-newsletter",
            user.language,
            {
                "name": user.name,
                "count": len(jobs),
                "jobs_html": _jobs_html(jobs),
                "jobs_text": _jobs_text(jobs),
            },
        )
        if delivered:
            sent += 1
        else:
            logger.error(f"Category newsletter for user {user.id} was not delivered")

    logger.info(f"Category newsletter: {sent} email(s) sent")
    return sent
