"""Security events router - two-factor activity reported by the client."""

from typing import List

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, get_client_ip, AuthenticatedUser
from app.models.audit import SecurityEvent
from app.schemas.security import SecurityEventCreate, SecurityEventResponse

router = APIRouter(prefix="/security", tags=["security"])

USER_AGENT_MAX_LENGTH = 500


@router.post("/events", response_model=SecurityEventResponse, status_code=status.HTTP_201_CREATED)
async def log_security_event(
    request: Request,
    data: SecurityEventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Record a 2FA event for the caller with request IP and user agent."""
    user_agent = request.headers.get("user-agent")
    event = SecurityEvent(
        user_id=current_user.db_user_id,
        event_type=data.event_type,
        ip_address=get_client_ip(request),
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
        metadata_=data.metadata or {},
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)

    return SecurityEventResponse.model_validate(event)


@router.get("/events", response_model=List[SecurityEventResponse])
async def list_my_security_events(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """The caller's security events, newest first."""
    result = await db.execute(
        select(SecurityEvent)
        .where(SecurityEvent.user_id == current_user.db_user_id)
        .order_by(SecurityEvent.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return [SecurityEventResponse.model_validate(e) for e in result.scalars().all()]
