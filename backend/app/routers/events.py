"""Timeline events router."""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.enums import AccessPermission, CategoryType
from app.models.event import Event
from app.schemas.base import SuccessResponse
from app.schemas.event import EventCreate, EventResponse, EventUpdate
from app.services.authorization import verify_entity_access, verify_project_access
from app.services.categories import get_valid_category
from app.services.notifications import NotificationService, notify_safely

router = APIRouter(prefix="/events", tags=["events"])


async def _get_event(db: AsyncSession, event_id: UUID) -> Event:
    result = await db.execute(
        select(Event).where(Event.id == event_id, Event.deleted_at.is_(None))
    )
    return verify_entity_access(result.scalar_one_or_none(), "Event")


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Add a timeline event (write access) and notify project members."""
    project = await verify_project_access(
        db, data.project_id, current_user.db_user_id, AccessPermission.WRITE
    )
    await get_valid_category(db, data.category_id, CategoryType.EVENT)

    event = Event(
        **data.model_dump(),
        created_by_id=current_user.db_user_id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)

    await notify_safely(
        db,
        NotificationService(db).notify_timeline_event(project, event, current_user.db_user_id),
        "timeline_event",
    )

    return EventResponse.model_validate(event)


@router.get("", response_model=List[EventResponse])
async def list_events(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Project timeline, most recent first."""
    await verify_project_access(db, project_id, current_user.db_user_id)

    result = await db.execute(
        select(Event)
        .where(Event.project_id == project_id, Event.deleted_at.is_(None))
        .order_by(Event.date.desc(), Event.created_at.desc())
    )
    return [EventResponse.model_validate(e) for e in result.scalars().all()]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    event = await _get_event(db, event_id)
    await verify_project_access(db, event.project_id, current_user.db_user_id)
    return EventResponse.model_validate(event)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    event = await _get_event(db, event_id)
    await verify_project_access(
        db, event.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    update_data = data.model_dump(exclude_unset=True)
    for field in ("title", "date", "category_id"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be cleared",
            )
    if "category_id" in update_data:
        await get_valid_category(db, update_data["category_id"], CategoryType.EVENT)

    for field, value in update_data.items():
        setattr(event, field, value)

    await db.commit()
    await db.refresh(event)

    return EventResponse.model_validate(event)


@router.delete("/{event_id}", response_model=SuccessResponse)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Soft delete an event (write access)."""
    event = await _get_event(db, event_id)
    await verify_project_access(
        db, event.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    event.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)
