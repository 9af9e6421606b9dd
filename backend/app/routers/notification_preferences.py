"""Email notification preferences router."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.enums import DigestFrequency
from app.models.notification import NotificationPreference
from app.schemas.base import SuccessResponse
from app.schemas.notification import (
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)
from app.services.email import verify_unsubscribe_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notification-preferences", tags=["notification-preferences"])


async def get_or_create_preferences(db: AsyncSession, user_id: UUID) -> NotificationPreference:
    """Load a user's preferences, inserting the defaults on first access."""
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    )
    preferences = result.scalar_one_or_none()
    if preferences:
        return preferences

    preferences = NotificationPreference(user_id=user_id)
    db.add(preferences)
    await db.commit()
    await db.refresh(preferences)
    return preferences


@router.get("", response_model=NotificationPreferenceResponse)
async def get_preferences(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    preferences = await get_or_create_preferences(db, current_user.db_user_id)
    return NotificationPreferenceResponse.model_validate(preferences)


@router.patch("", response_model=NotificationPreferenceResponse)
async def update_preferences(
    data: NotificationPreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Partially update toggles, digest frequency or timezone."""
    preferences = await get_or_create_preferences(db, current_user.db_user_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(preferences, field, value)

    await db.commit()
    await db.refresh(preferences)

    return NotificationPreferenceResponse.model_validate(preferences)


@router.get("/unsubscribe", response_model=SuccessResponse)
async def unsubscribe(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """One-click unsubscribe from email links. No session required."""
    user_id = verify_unsubscribe_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired unsubscribe link",
        )

    preferences = await get_or_create_preferences(db, user_id)
    preferences.email_digest_frequency = DigestFrequency.NEVER
    await db.commit()

    logger.info(f"[EMAIL] User {user_id} unsubscribed via email link")
    return SuccessResponse(success=True)
