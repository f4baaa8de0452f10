"""
Notification API endpoints.
Per-type delivery preferences and category newsletter subscriptions.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.api.auth import get_current_user
from app.services import notifications
from app.schemas.notification import (
    CategoryFollowRequest,
    CategoryFollowResponse,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/preferences", response_model=list[NotificationPreferenceResponse])
async def get_preferences(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """All notification types, with defaults filled in."""
    return await notifications.get_preferences(db, current_user)


@router.patch("/preferences", response_model=NotificationPreferenceResponse)
async def update_preference(
    request: NotificationPreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await notifications.update_preference(
        db, current_user, request.type, enabled=request.enabled, frequency=request.frequency
    )


@router.get("/category-follows", response_model=list[CategoryFollowResponse])
async def list_category_follows(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await notifications.list_followed_categories(db, current_user)


@router.post("/category-follows", response_model=CategoryFollowResponse, status_code=201)
async def follow_category(
    request: CategoryFollowRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await notifications.follow_category(db, current_user, request.category_id)


@router.delete("/category-follows/{category_id}", status_code=204)
async def unfollow_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await notifications.unfollow_category(db, current_user, category_id)
