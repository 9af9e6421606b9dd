"""Notifications router - in-app notification feed."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.notification import Notification
from app.models.project import Project
from app.schemas.base import SuccessResponse
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationProject,
    NotificationResponse,
    UnreadCountResponse,
)
from app.services.authorization import verify_entity_access

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
    project_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """The caller's notifications, newest first, with their project."""
    query = (
        select(Notification, Project.id, Project.name)
        .outerjoin(Project, Notification.project_id == Project.id)
        .where(Notification.user_id == current_user.db_user_id)
    )
    if unread_only:
        query = query.where(Notification.read.is_(False))
    if project_id:
        query = query.where(Notification.project_id == project_id)

    result = await db.execute(
        query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
    )

    notifications = []
    for notification, pid, project_name in result.all():
        response = NotificationResponse.model_validate(notification)
        if pid:
            response.project = NotificationProject(id=pid, name=project_name)
        notifications.append(response)
    return notifications


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.db_user_id,
            Notification.read.is_(False),
        )
    )
    return UnreadCountResponse(count=result.scalar() or 0)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    project_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Mark every unread notification as read, optionally for one project."""
    stmt = update(Notification).where(
        Notification.user_id == current_user.db_user_id,
        Notification.read.is_(False),
    )
    if project_id:
        stmt = stmt.where(Notification.project_id == project_id)

    result = await db.execute(stmt.values(read=True))
    await db.commit()

    return MarkAllReadResponse(count=result.rowcount or 0)


@router.post("/{notification_id}/read", response_model=SuccessResponse)
async def mark_as_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Mark one of the caller's notifications as read."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current_user.db_user_id,
        )
    )
    notification = verify_entity_access(result.scalar_one_or_none(), "Notification")

    notification.read = True
    await db.commit()

    return SuccessResponse(success=True)
