from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from app.database import Base


MAX_MESSAGE_LENGTH = 2000


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Trimmed; empty messages are stored as NULL
    message = Column(String(MAX_MESSAGE_LENGTH), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    freelancer = relationship("User", lazy="selectin")

    __table_args__ = (
        # One application per freelancer per job; re-applying updates the message
        UniqueConstraint("job_id", "freelancer_id", name="uq_job_applications_job_freelancer"),
    )


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    job = relationship("Job", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_favorites_user_job"),
    )
