"""
Proposals API endpoints.

Admins create and list invitations; the invitee answers with the token
from the email, without being logged in.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.api.auth import require_admin
from app.services import proposals
from app.schemas.proposal import (
    ProposalAcceptRequest,
    ProposalCreate,
    ProposalDecisionResponse,
    ProposalListResponse,
    ProposalPreviewResponse,
    ProposalRejectRequest,
    ProposalResponse,
    ProposalStatsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProposalResponse, status_code=201)
async def create_proposal(
    request: ProposalCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Prepare an ownerless job draft and email the invitation."""
    return await proposals.create_proposal(db, admin, request)


@router.get("/", response_model=ProposalListResponse)
async def list_proposals(
    limit: int = Query(20, ge=1, le=proposals.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    items, total = await proposals.list_proposals(db, admin, limit=limit, offset=offset)
    return ProposalListResponse(
        items=[ProposalResponse.model_validate(item) for item in items],
        total=total,
    )


@router.get("/stats", response_model=ProposalStatsResponse)
async def proposal_stats(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return await proposals.proposal_stats(db, admin)


@router.get("/by-token/{token}", response_model=ProposalPreviewResponse)
async def get_proposal_by_token(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Public: what the invitee is being offered."""
    preview = await proposals.get_by_token(db, token)
    if preview is None:
        raise HTTPException(status_code=404, detail="Invitation not found")
    return preview


@router.post("/accept", response_model=ProposalDecisionResponse)
async def accept_proposal(
    request: ProposalAcceptRequest,
    db: AsyncSession = Depends(get_db)
):
    """Public: accept the invitation and publish the listing."""
    return await proposals.accept_proposal(
        db, request.token, lang=request.lang, terms_accepted=request.terms_accepted
    )


@router.post("/reject", response_model=ProposalDecisionResponse)
async def reject_proposal(
    request: ProposalRejectRequest,
    db: AsyncSession = Depends(get_db)
):
    """Public: decline the invitation."""
    return await proposals.reject_proposal(db, request.token, lang=request.lang)
