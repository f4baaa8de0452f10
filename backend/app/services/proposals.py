"""
Invitation proposals.

An admin prepares an ownerless job draft and invites an email address with
a single-use token. Accepting the token provisions (or reuses) a CLIENT
account, hands the draft over and publishes it; rejecting just records
the answer.

A proposal leaves PENDING exactly once. The claim is a conditional UPDATE
on the status column, so two simultaneous answers cannot both win.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import utcnow
from app.config import settings
from app.models.proposal import Proposal, ProposalStatus
from app.models.user import AccountType, User
from app.schemas.proposal import ProposalCreate
from app.services.email import email_service
from app.services.email_templates import normalize_language
from app.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.services.job_lifecycle import (
    create_ownerless_draft,
    get_job_or_404,
    notify_job_published,
    publish_for_invitation,
)
from app.services.passwords import hash_password

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
PASSWORD_BYTES = 16
MAX_PAGE_SIZE = 100

MESSAGES = {
    "account_created": {
        "pl": "Konto utworzone. Wysłaliśmy dane logowania na Twój adres e-mail. Zaloguj się i zmień hasło.",
        "en": "Account created. We have sent login details to your email. Log in and change your password.",
    },
    "existing_account": {
        "pl": "Ogłoszenie zostało opublikowane na Twoim koncie. Zaloguj się, aby nim zarządzać.",
        "en": "Your listing has been published on your account. Log in to manage it.",
    },
    "rejected": {
        "pl": "Dziękujemy za odpowiedź.",
        "en": "Thank you for your response.",
    },
}

ALREADY_USED = "This link has already been used"


@dataclass
class ProposalPreview:
    email: str
    reason: str
    status: str
    title: str
    job_id: UUID


@dataclass
class ProposalDecision:
    status: str
    message: str
    account_created: bool = False
    job_id: Optional[UUID] = None


async def _get_by_token(db: AsyncSession, token: str) -> Optional[Proposal]:
    result = await db.execute(
        select(Proposal)
        .where(Proposal.token == token)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _claim(db: AsyncSession, proposal: Proposal, to_status: ProposalStatus, now: datetime) -> None:
    """Atomically move a proposal out of PENDING, or raise Conflict."""
    result = await db.execute(
        update(Proposal)
        .where(Proposal.id == proposal.id, Proposal.status == ProposalStatus.PENDING.value)
        .values(status=to_status.value, responded_at=now)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise ConflictError(ALREADY_USED)


def _require_admin(actor: Optional[User]) -> None:
    if actor is None or not actor.is_admin():
        raise ForbiddenError("Only admins can manage proposals")


async def create_proposal(
    db: AsyncSession,
    admin: User,
    data: ProposalCreate,
    now: Optional[datetime] = None
) -> Proposal:
    """Create the ownerless draft, persist the proposal and email the invitation."""
    now = now or utcnow()
    _require_admin(admin)

    job, preview_hash = await create_ownerless_draft(db, data.job, now=now, commit=False)
    proposal = Proposal(
        token=secrets.token_hex(TOKEN_BYTES),
        email=data.email.lower(),
        reason=data.reason.value,
        status=ProposalStatus.PENDING.value,
        job_id=job.id,
        created_by_id=admin.id,
        created_at=now,
    )
    proposal.job = job
    db.add(proposal)
    await db.commit()

    logger.info(f"Proposal {proposal.id} created by {admin.id} for job {job.id}")

    frontend = settings.get_frontend_url()
    sent = await email_service.send_template(
        proposal.email,
        "proposal-invitation",
        data.lang,
        {
            "offer_title": job.title,
            "preview_url": f"{frontend}/jobs/{job.id}?preview={preview_hash}",
            "accept_url": f"{frontend}/invitation?token={proposal.token}&action=accept",
            "reject_url": f"{frontend}/invitation?token={proposal.token}&action=reject",
        },
    )
    if not sent:
        logger.error(f"Invitation email for proposal {proposal.id} was not delivered")
    return proposal


async def get_by_token(db: AsyncSession, token: str) -> Optional[ProposalPreview]:
    """Public lookup for the accept/reject page. Unknown tokens return None."""
    proposal = await _get_by_token(db, token)
    if proposal is None:
        return None
    return ProposalPreview(
        email=proposal.email,
        reason=proposal.reason,
        status=proposal.status,
        title=proposal.job.title if proposal.job else "",
        job_id=proposal.job_id,
    )


async def accept_proposal(
    db: AsyncSession,
    token: str,
    lang: str = "pl",
    terms_accepted: bool = False,
    now: Optional[datetime] = None
) -> ProposalDecision:
    """
    Accept an invitation: provision or reuse a CLIENT account, hand over
    the draft and publish it.

    Emails (credentials, welcome) and skill matching run only after the
    transaction commits, and only for the caller that won the claim.

    Raises:
        ValidationError: Terms not accepted
        NotFoundError: Unknown token or missing job
        ConflictError: Proposal already answered, or the email belongs to
            a non-client account
    """
    now = now or utcnow()
    lang = normalize_language(lang)
    if not terms_accepted:
        raise ValidationError("Terms must be accepted")

    proposal = await _get_by_token(db, token)
    if proposal is None:
        raise NotFoundError("Invitation not found")
    if proposal.status != ProposalStatus.PENDING.value:
        raise ConflictError(ALREADY_USED)

    result = await db.execute(select(User).where(func.lower(User.email) == proposal.email.lower()))
    user = result.scalar_one_or_none()
    if user is not None and user.account_type != AccountType.CLIENT:
        raise ConflictError("An account with this email already exists and cannot take over this listing")

    job = await get_job_or_404(db, proposal.job_id)

    await _claim(db, proposal, ProposalStatus.ACCEPTED, now)

    password = None
    if user is None:
        password = secrets.token_hex(PASSWORD_BYTES)
        user = User(
            email=proposal.email,
            password_hash=hash_password(password),
            account_type=AccountType.CLIENT,
            language=lang,
            created_at=now,
            updated_at=now,
            skills=[],
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("An account with this email already exists")

    try:
        publish_for_invitation(job, user, now)
    except ConflictError:
        await db.rollback()
        raise
    await db.commit()

    account_created = password is not None
    logger.info(
        f"Proposal {proposal.id} accepted by {'new' if account_created else 'existing'} "
        f"client {user.id}; job {job.id} published"
    )

    login_url = f"{settings.get_frontend_url()}/login"
    if account_created:
        sent = await email_service.send_template(
            user.email,
            "proposal-credentials",
            lang,
            {"email": user.email, "password": password, "login_url": login_url},
        )
        if not sent:
            logger.error(f"Credentials email for user {user.id} was not delivered")

        sent = await email_service.send_template(
            user.email,
            "welcome",
            lang,
            {"name": user.name, "login_url": login_url},
        )
        if sent:
            user.welcome_email_sent_at = utcnow()
            await db.commit()

    await notify_job_published(db, job.id, now=now)

    return ProposalDecision(
        status=ProposalStatus.ACCEPTED.value,
        message=MESSAGES["account_created" if account_created else "existing_account"][lang],
        account_created=account_created,
        job_id=job.id,
    )


async def reject_proposal(
    db: AsyncSession,
    token: str,
    lang: str = "pl",
    now: Optional[datetime] = None
) -> ProposalDecision:
    """
    Decline an invitation. The draft stays ownerless.

    Raises:
        NotFoundError: Unknown token
        ConflictError: Proposal already answered
    """
    now = now or utcnow()
    lang = normalize_language(lang)

    proposal = await _get_by_token(db, token)
    if proposal is None:
        raise NotFoundError("Invitation not found")
    if proposal.status != ProposalStatus.PENDING.value:
        raise ConflictError(ALREADY_USED)

    await _claim(db, proposal, ProposalStatus.REJECTED, now)
    await db.commit()

    logger.info(f"Proposal {proposal.id} rejected")
    return ProposalDecision(
        status=ProposalStatus.REJECTED.value,
        message=MESSAGES["rejected"][lang],
        job_id=proposal.job_id,
    )


async def list_proposals(
    db: AsyncSession,
    admin: User,
    limit: int = 20,
    offset: int = 0
) -> Tuple[list[Proposal], int]:
    """Newest first. Returns one page and the total count."""
    _require_admin(admin)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)

    result = await db.execute(
        select(Proposal).order_by(Proposal.created_at.desc()).limit(limit).offset(offset)
    )
    total = (await db.execute(select(func.count()).select_from(Proposal))).scalar_one()
    return list(result.scalars().all()), total


async def proposal_stats(db: AsyncSession, admin: User) -> dict[str, int]:
    _require_admin(admin)
    result = await db.execute(
        select(Proposal.status, func.count()).group_by(Proposal.status)
    )
    counts = {status: count for status, count in result.all()}
    stats = {s.value.lower(): counts.get(s.value, 0) for s in ProposalStatus}
    stats["total"] = sum(counts.values())
    return stats
