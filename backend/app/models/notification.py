from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid
import enum

from app.clock import utcnow
from app.database import Base


class NotificationType(str, enum.Enum):
    NEW_JOB_MATCHING_SKILLS = "NEW_JOB_MATCHING_SKILLS"
    NEW_APPLICATION_TO_MY_JOB = "NEW_APPLICATION_TO_MY_JOB"
    NEW_JOBS_IN_FOLLOWED_CATEGORIES = "NEW_JOBS_IN_FOLLOWED_CATEGORIES"


class NotificationFrequency(str, enum.Enum):
    INSTANT = "INSTANT"
    DAILY_DIGEST = "DAILY_DIGEST"


# Applied when a user has no preference row for a type
DEFAULT_ENABLED = True
DEFAULT_FREQUENCY = NotificationFrequency.INSTANT


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    enabled = Column(Boolean, nullable=False, default=DEFAULT_ENABLED)
    frequency = Column(String(20), nullable=False, default=DEFAULT_FREQUENCY.value)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_notification_preferences_user_type"),
    )


class NotificationLog(Base):
    """
    One matching event between a user and a job.

    Rows are append-only apart from `dispatched`, which is true as soon as
    the user was emailed or the match was dropped as stale.
    """
    __tablename__ = "notification_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(50), nullable=False)
    dispatched = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", lazy="selectin")
    job = relationship("Job", lazy="selectin")


class CategoryFollow(Base):
    __tablename__ = "category_follows"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    category = relationship("Category", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", name="uq_category_follows_user_category"),
    )
