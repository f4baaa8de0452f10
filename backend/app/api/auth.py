"""
Authentication dependencies.

Sessions are issued elsewhere; the `auth_token` httpOnly cookie carries
the user id.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import Cookie, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User

logger = logging.getLogger(__name__)


async def get_optional_user(
    auth_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user, or None for anonymous requests and unknown tokens."""
    if not auth_token:
        return None

    try:
        user_id = UUID(auth_token)
    except ValueError:
        logger.warning("Malformed auth_token cookie")
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """
    Dependency to get current authenticated user from httpOnly cookie.

    Returns:
        User object if authenticated

    Raises:
        HTTPException 401: If not authenticated
    """
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated"
        )
    return user


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency to require admin account type.

    Raises:
        HTTPException 403: If user is not an admin
    """
    if not current_user.is_admin():
        logger.warning(f"Non-admin user {current_user.email} attempted to access admin endpoint")
        raise HTTPException(
            status_code=403,
            detail="Admin access required"
        )
    return current_user
