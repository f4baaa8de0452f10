from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship
import uuid
import enum

from app.clock import utcnow
from app.database import Base


class ProposalStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"  # Terminal
    REJECTED = "REJECTED"  # Terminal


class ProposalReason(str, enum.Enum):
    """Why the invitee was contacted."""
    COLD_OUTREACH = "COLD_OUTREACH"
    SCRAPED_LISTING = "SCRAPED_LISTING"
    OTHER = "OTHER"


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # One-time token (64 hex chars) sent to the invitee
    token = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String, nullable=False, index=True)
    reason = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=ProposalStatus.PENDING.value, index=True)

    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    responded_at = Column(DateTime, nullable=True)

    job = relationship("Job", lazy="selectin")
