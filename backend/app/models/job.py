from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String, Text, Uuid
)
from sqlalchemy.orm import relationship
import uuid
import enum

from app.clock import utcnow
from app.database import Base
from app.models.catalog import job_skills


class JobStatus(str, enum.Enum):
    """Lifecycle states of a job posting. See app.services.job_lifecycle."""
    DRAFT = "DRAFT"  # Awaiting moderation, or ownerless while a proposal is pending
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"  # Terminal
    REJECTED = "REJECTED"  # Owner may edit and resubmit


class JobLanguage(str, enum.Enum):
    POLISH = "POLISH"
    ENGLISH = "ENGLISH"


class BillingType(str, enum.Enum):
    FIXED = "FIXED"
    HOURLY = "HOURLY"


class HoursPerWeek(str, enum.Enum):
    LESS_THAN_10 = "LESS_THAN_10"
    FROM_11_TO_20 = "FROM_11_TO_20"
    FROM_21_TO_30 = "FROM_21_TO_30"
    MORE_THAN_30 = "MORE_THAN_30"


class ExperienceLevel(str, enum.Enum):
    JUNIOR = "JUNIOR"
    MID = "MID"
    SENIOR = "SENIOR"


class ProjectType(str, enum.Enum):
    ONE_TIME = "ONE_TIME"
    CONTINUOUS = "CONTINUOUS"


class ApplicantType(str, enum.Enum):
    """Profile type of an applicant, derived from the company attached to the profile."""
    FREELANCER_NO_B2B = "FREELANCER_NO_B2B"
    FREELANCER_B2B = "FREELANCER_B2B"
    COMPANY = "COMPANY"


# Allowed values for the offer window and the expected number of offers
OFFER_DAYS = (7, 14, 21, 30)
EXPECTED_OFFERS = (6, 10, 14)
MAX_SKILLS_PER_JOB = 5


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    # Null only while the job is an ownerless proposal draft
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=JobStatus.DRAFT.value)
    language = Column(String(20), nullable=False, default=JobLanguage.POLISH.value)

    # Billing
    billing_type = Column(String(20), nullable=False)
    hours_per_week = Column(String(20), nullable=True)  # HOURLY billing only
    rate = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    rate_negotiable = Column(Boolean, nullable=False, default=False)
    currency = Column(String(3), nullable=False, default="PLN")

    experience_level = Column(String(20), nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    is_remote = Column(Boolean, nullable=False, default=False)
    project_type = Column(String(20), nullable=False)

    # created_at + one of OFFER_DAYS
    deadline = Column(DateTime, nullable=True)
    expected_offers = Column(Integer, nullable=True)
    # Empty list accepts every applicant type
    expected_applicant_types = Column(JSON, nullable=False, default=list)

    # Unauthenticated preview of a proposal draft; cleared on publish
    preview_hash = Column(String(32), nullable=True, unique=True)

    rejected_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User", lazy="selectin")
    category = relationship("Category", lazy="selectin")
    location = relationship("Location", lazy="selectin")
    skills = relationship("Skill", secondary=job_skills, lazy="selectin")

    __table_args__ = (
        Index("ix_jobs_status_published_at", "status", "published_at"),
    )

    def is_owned_by(self, user) -> bool:
        return user is not None and self.author_id is not None and self.author_id == user.id
