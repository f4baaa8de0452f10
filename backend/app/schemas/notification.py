"""Notification preference and category follow schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from app.models.notification import NotificationFrequency, NotificationType


class NotificationPreferenceResponse(BaseModel):
    type: NotificationType
    enabled: bool
    frequency: NotificationFrequency

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferenceUpdate(BaseModel):
    """Omitted fields keep their current value."""
    type: NotificationType
    enabled: Optional[bool] = None
    frequency: Optional[NotificationFrequency] = None


class CategoryFollowRequest(BaseModel):
    category_id: int


class CategoryFollowResponse(BaseModel):
    category_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
