from sqlalchemy import Boolean, Column, String, DateTime, Enum as SQLEnum, Uuid
from sqlalchemy.orm import relationship
import uuid
import enum

from app.clock import utcnow
from app.database import Base
from app.models.catalog import user_skills


class AccountType(str, enum.Enum):
    """Account type chosen during onboarding."""
    CLIENT = "CLIENT"  # Posts jobs
    FREELANCER = "FREELANCER"  # Applies to jobs, receives job notifications
    ADMIN = "ADMIN"  # Moderates jobs, sends proposals


class CompanySize(str, enum.Enum):
    """Size of the company attached to a profile. FREELANCER means a B2B sole trader."""
    FREELANCER = "FREELANCER"
    MICRO = "MICRO"
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=True)

    # Null until the user completes onboarding
    account_type = Column(
        SQLEnum(AccountType, name="account_type"),
        nullable=True,
        index=True
    )

    name = Column(String(100), nullable=True)
    surname = Column(String(100), nullable=True)
    language = Column(String(2), nullable=False, default="pl")  # pl | en

    # Null means the user has no company attached
    company_size = Column(String(20), nullable=True)

    # Auto-generated accounts (seeded content); never matched for notifications
    is_fake = Column(Boolean, nullable=False, default=False)

    welcome_email_sent_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    skills = relationship("Skill", secondary=user_skills, lazy="selectin")

    def is_admin(self) -> bool:
        """Check if user has admin account type."""
        return self.account_type == AccountType.ADMIN
