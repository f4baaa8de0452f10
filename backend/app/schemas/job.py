"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from app.models.application import MAX_MESSAGE_LENGTH
from app.models.job import (
    ApplicantType,
    BillingType,
    ExperienceLevel,
    HoursPerWeek,
    JobLanguage,
    ProjectType,
)


class JobCreate(BaseModel):
    """Schema for creating a new job draft."""
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=1)
    category_id: int
    language: JobLanguage = JobLanguage.POLISH
    billing_type: BillingType
    hours_per_week: Optional[HoursPerWeek] = None  # HOURLY billing only
    rate: Optional[float] = Field(default=None, ge=0)
    rate_negotiable: bool = False
    currency: str = Field(default="PLN", min_length=3, max_length=3)
    experience_level: ExperienceLevel
    location_id: Optional[int] = None
    is_remote: bool = False
    project_type: ProjectType
    offer_days: Optional[int] = None  # 7 | 14 | 21 | 30
    expected_offers: Optional[int] = None  # 6 | 10 | 14
    expected_applicant_types: list[ApplicantType] = Field(default_factory=list)
    skill_ids: list[int] = Field(default_factory=list)
    new_skill_names: list[str] = Field(default_factory=list)


class JobPatch(BaseModel):
    """
    Partial update of a job. Only fields that were explicitly set are applied.

    Setting `skill_ids` replaces the skill set; `new_skill_names` are added
    to whichever set results.
    """
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[int] = None
    language: Optional[JobLanguage] = None
    billing_type: Optional[BillingType] = None
    hours_per_week: Optional[HoursPerWeek] = None
    rate: Optional[float] = Field(default=None, ge=0)
    rate_negotiable: Optional[bool] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    experience_level: Optional[ExperienceLevel] = None
    location_id: Optional[int] = None
    is_remote: Optional[bool] = None
    project_type: Optional[ProjectType] = None
    offer_days: Optional[int] = None
    expected_offers: Optional[int] = None
    expected_applicant_types: Optional[list[ApplicantType]] = None
    skill_ids: Optional[list[int]] = None
    new_skill_names: Optional[list[str]] = None


class SkillResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class JobResponse(BaseModel):
    """Schema for job response. `rate` is withheld from anonymous viewers."""
    id: UUID
    title: str
    description: str
    category_id: int
    author_id: Optional[UUID] = None
    status: str
    language: str
    billing_type: str
    hours_per_week: Optional[str] = None
    rate: Optional[float] = None
    rate_negotiable: bool
    currency: str
    experience_level: str
    location_id: Optional[int] = None
    is_remote: bool
    project_type: str
    deadline: Optional[datetime] = None
    expected_offers: Optional[int] = None
    expected_applicant_types: list[str]
    rejected_reason: Optional[str] = None
    published_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    skills: list[SkillResponse]

    model_config = ConfigDict(from_attributes=True)


class JobRejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=2000)


class ApplyRequest(BaseModel):
    message: Optional[str] = Field(default=None, max_length=MAX_MESSAGE_LENGTH)


class ApplicationResponse(BaseModel):
    id: UUID
    job_id: UUID
    freelancer_id: UUID
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FullApplicantView(BaseModel):
    """Applicant as seen by the job owner or an admin."""
    kind: str = "full"
    application_id: UUID
    freelancer_id: UUID
    name: Optional[str] = None
    surname: Optional[str] = None
    email: str
    message: Optional[str] = None
    created_at: datetime


class MaskedApplicantView(BaseModel):
    """Applicant as seen by everyone else: display name and initials."""
    kind: str = "masked"
    display_name: str
    initials: str
    message: Optional[str] = None  # Only on the viewer's own application
    created_at: datetime


class JobDetailResponse(BaseModel):
    job: JobResponse
    application_count: int
    applications: list[FullApplicantView | MaskedApplicantView]
    current_user_applied: bool = False
    is_favorite: bool = False


class FavoriteResponse(BaseModel):
    job_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
