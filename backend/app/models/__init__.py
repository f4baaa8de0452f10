"""Database models"""
from app.models.catalog import Skill, Category, Location
from app.models.user import User, AccountType, CompanySize
from app.models.job import Job, JobStatus, ApplicantType
from app.models.application import JobApplication, Favorite
from app.models.notification import (
    NotificationPreference,
    NotificationLog,
    CategoryFollow,
    NotificationType,
    NotificationFrequency,
)
from app.models.proposal import Proposal, ProposalStatus, ProposalReason

__all__ = [
    "Skill",
    "Category",
    "Location",
    "User",
    "AccountType",
    "CompanySize",
    "Job",
    "JobStatus",
    "ApplicantType",
    "JobApplication",
    "Favorite",
    "NotificationPreference",
    "NotificationLog",
    "CategoryFollow",
    "NotificationType",
    "NotificationFrequency",
    "Proposal",
    "ProposalStatus",
    "ProposalReason",
]
