"""Proposal (job invitation) Pydantic schemas."""
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.proposal import ProposalReason
from app.schemas.job import JobCreate


class ProposalCreate(BaseModel):
    """Admin request: prepare a job draft and invite `email` to take it over."""
    email: EmailStr
    reason: ProposalReason
    lang: Literal["pl", "en"] = "pl"
    job: JobCreate


class ProposalResponse(BaseModel):
    id: UUID
    email: str
    reason: str
    status: str
    job_id: UUID
    created_at: datetime
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProposalListResponse(BaseModel):
    items: list[ProposalResponse]
    total: int


class ProposalStatsResponse(BaseModel):
    pending: int
    accepted: int
    rejected: int
    total: int


class ProposalPreviewResponse(BaseModel):
    """What the invitee sees before accepting or rejecting."""
    email: str
    reason: str
    status: str
    title: str
    job_id: UUID

    model_config = ConfigDict(from_attributes=True)


class ProposalAcceptRequest(BaseModel):
    token: str = Field(min_length=1)
    lang: Literal["pl", "en"] = "pl"
    terms_accepted: bool = False


class ProposalRejectRequest(BaseModel):
    token: str = Field(min_length=1)
    lang: Literal["pl", "en"] = "pl"


class ProposalDecisionResponse(BaseModel):
    status: str
    message: str
    account_created: bool = False
    job_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)
