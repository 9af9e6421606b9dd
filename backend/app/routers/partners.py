"""Partners router - project sharing by email invitation."""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import require_user, get_client_ip, AuthenticatedUser
from app.models.project import Project, ProjectAccess
from app.models.user import User
from app.schemas.base import SuccessResponse
from app.schemas.partner import (
    AcceptResult,
    InvitationDetails,
    InviteResult,
    PartnerAccept,
    PartnerInvite,
    PartnerListItem,
    PartnerUser,
    ProjectAccessResponse,
)
from app.services.audit import AuditService
from app.services.authorization import assert_project_owner, verify_entity_access
from app.services.email import EmailNotificationService
from app.services.notifications import NotificationService, notify_safely

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(tags=["partners"])


async def _get_owned_project(db: AsyncSession, project_id: UUID, user_id: UUID, operation: str) -> Project:
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.deleted_at.is_(None))
    )
    project = verify_entity_access(result.unique().scalar_one_or_none(), "Project")
    assert_project_owner(project, user_id, operation)
    return project


async def _get_owned_access(db: AsyncSession, access_id: UUID, user_id: UUID, operation: str) -> tuple[ProjectAccess, Project]:
    result = await db.execute(
        select(ProjectAccess).where(ProjectAccess.id == access_id, ProjectAccess.deleted_at.is_(None))
    )
    access = verify_entity_access(result.scalar_one_or_none(), "Invitation")
    project = await _get_owned_project(db, access.project_id, user_id, operation)
    return access, project


async def _load_user(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one()


def _new_token() -> tuple[str, datetime]:
    return str(uuid.uuid4()), datetime.utcnow() + timedelta(days=settings.invitation_ttl_days)


async def _send_invitation_email(
    db: AsyncSession,
    inviter: User,
    access: ProjectAccess,
    project_name: str,
) -> bool:
    """Send the invitation email and commit its log row."""
    email_service = EmailNotificationService(db)
    sent = await email_service.send_partner_invitation(
        inviter=inviter,
        recipient_email=access.invited_email,
        project_name=project_name,
        permission=access.permission.value,
        token=access.invitation_token,
        expires_at=access.expires_at,
    )
    await db.commit()
    return sent


@router.post("/projects/{project_id}/partners", response_model=InviteResult)
async def invite_partner(
    request: Request,
    project_id: UUID,
    data: PartnerInvite,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Invite someone by email to read or write a project (owner only)."""
    project = await _get_owned_project(db, project_id, current_user.db_user_id, "invite partners")
    email = data.email.lower()

    user_result = await db.execute(
        select(User).where(User.email == email, User.deleted_at.is_(None))
    )
    existing_user = user_result.scalar_one_or_none()

    if existing_user:
        active = await db.execute(
            select(ProjectAccess).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.user_id == existing_user.id,
                ProjectAccess.accepted_at.is_not(None),
                ProjectAccess.deleted_at.is_(None),
            )
        )
        active_access = active.scalars().first()
        if active_access:
            return InviteResult(
                status="already_partner",
                message="This person already has access to this project.",
                access=ProjectAccessResponse.model_validate(active_access),
            )

    pending = await db.execute(
        select(ProjectAccess).where(
            ProjectAccess.project_id == project_id,
            ProjectAccess.invited_email == email,
            ProjectAccess.invitation_token.is_not(None),
            ProjectAccess.accepted_at.is_(None),
            ProjectAccess.deleted_at.is_(None),
        )
    )
    pending_access = pending.scalars().first()
    if pending_access:
        return InviteResult(
            status="pending_invitation",
            message="An invitation is already pending.",
            access_id=pending_access.id,
            can_resend=True,
        )

    reinvite = False
    if existing_user:
        revoked = await db.execute(
            select(ProjectAccess.id).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.user_id == existing_user.id,
                ProjectAccess.deleted_at.is_not(None),
            )
        )
        reinvite = revoked.first() is not None

    token, expires_at = _new_token()
    access = ProjectAccess(
        project_id=project_id,
        invited_email=email,
        permission=data.permission,
        invited_by=current_user.db_user_id,
        invited_at=datetime.utcnow(),
        invitation_token=token,
        expires_at=expires_at,
    )
    db.add(access)
    await db.flush()

    audit = AuditService(db)
    await audit.log_partner_invited(
        access_id=access.id,
        project_id=project_id,
        user_id=current_user.db_user_id,
        invited_email=email,
        ip_address=get_client_ip(request),
    )

    await db.commit()
    await db.refresh(access)
    access_response = ProjectAccessResponse.model_validate(access)

    inviter = await _load_user(db, current_user.db_user_id)
    await _send_invitation_email(db, inviter, access, project.name)

    if existing_user:
        await notify_safely(
            db,
            NotificationService(db).notify_partner_invited(project, inviter, existing_user.id),
            "partner_invited",
        )

    if reinvite:
        return InviteResult(
            status="reinvite_sent",
            message="Invitation sent to previously revoked partner.",
            access=access_response,
        )
    return InviteResult(
        status="invitation_sent",
        message=f"Invitation sent to {email}. They have {settings.invitation_ttl_days} days to accept.",
        access=access_response,
    )


@router.get("/projects/{project_id}/partners", response_model=List[PartnerListItem])
async def list_partners(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Pending, expired and accepted invitations for a project (owner only)."""
    await _get_owned_project(db, project_id, current_user.db_user_id, "view invitations")

    result = await db.execute(
        select(ProjectAccess, User)
        .outerjoin(User, ProjectAccess.user_id == User.id)
        .where(ProjectAccess.project_id == project_id, ProjectAccess.deleted_at.is_(None))
        .order_by(ProjectAccess.invited_at)
    )

    now = datetime.utcnow()
    items = []
    for access, user in result.all():
        days_remaining = None
        if access.accepted_at:
            state = "accepted"
        elif access.expires_at and now > access.expires_at:
            state = "expired"
        else:
            state = "pending"
            if access.expires_at:
                days_remaining = math.ceil((access.expires_at - now).total_seconds() / 86400)

        items.append(
            PartnerListItem(
                id=access.id,
                email=access.invited_email or (user.email if user else ""),
                status=state,
                permission=access.permission,
                invited_at=access.invited_at,
                expires_at=access.expires_at,
                accepted_at=access.accepted_at,
                days_remaining=days_remaining,
                user=PartnerUser(first_name=user.first_name, last_name=user.last_name) if user else None,
            )
        )
    return items


@router.get("/partners/invitations/{token}", response_model=InvitationDetails)
async def get_invitation_details(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Public summary of an invitation, shown before sign-in."""
    result = await db.execute(
        select(ProjectAccess, Project.name, User)
        .join(Project, ProjectAccess.project_id == Project.id)
        .outerjoin(User, ProjectAccess.invited_by == User.id)
        .where(ProjectAccess.invitation_token == token, ProjectAccess.deleted_at.is_(None))
    )
    row = result.first()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invitation link.")

    access, project_name, inviter = row
    if access.accepted_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This invitation has already been accepted.",
        )
    if access.expires_at and datetime.utcnow() > access.expires_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This invitation has expired.",
        )

    return InvitationDetails(
        project_name=project_name,
        inviter_name=(inviter.full_name or inviter.email) if inviter else "",
        invited_email=access.invited_email,
        permission=access.permission,
        expires_at=access.expires_at,
    )


@router.post("/partners/accept", response_model=AcceptResult)
async def accept_invitation(
    request: Request,
    data: PartnerAccept,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Attach the signed-in user to an invitation addressed to their email."""
    result = await db.execute(
        select(ProjectAccess).where(
            ProjectAccess.invitation_token == data.token,
            ProjectAccess.deleted_at.is_(None),
        )
    )
    access = result.scalar_one_or_none()
    if not access:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid invitation link.")
    if access.expires_at and datetime.utcnow() > access.expires_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This invitation has expired. Please request a new one.",
        )
    if access.accepted_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This invitation has already been accepted.",
        )

    user = await _load_user(db, current_user.db_user_id)
    if (access.invited_email or "").lower() != user.email.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This invitation was sent to a different email address. "
                   "Please log out and use the correct account.",
        )

    access.user_id = user.id
    access.accepted_at = datetime.utcnow()
    access.invitation_token = None
    user.email_verified = True

    audit = AuditService(db)
    await audit.log_partner_accepted(
        access_id=access.id,
        project_id=access.project_id,
        user_id=user.id,
        ip_address=get_client_ip(request),
    )

    await db.commit()
    logger.info(f"User {user.id} accepted invitation to project {access.project_id}")

    return AcceptResult(message="Invitation accepted successfully.", project_id=access.project_id)


@router.delete("/partners/{access_id}", response_model=SuccessResponse)
async def revoke_partner(
    access_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Revoke a partner's access (owner only)."""
    access, project = await _get_owned_access(db, access_id, current_user.db_user_id, "revoke access")

    access.deleted_at = datetime.utcnow()
    access.invitation_token = None

    audit = AuditService(db)
    await audit.log_partner_revoked(
        access_id=access.id,
        project_id=project.id,
        user_id=current_user.db_user_id,
    )

    await db.commit()

    return SuccessResponse(success=True)


@router.post("/partners/{access_id}/resend", response_model=ProjectAccessResponse)
async def resend_invitation(
    access_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Issue a fresh token and expiry for a pending invitation and email it again."""
    access, project = await _get_owned_access(db, access_id, current_user.db_user_id, "resend invitations")
    if access.accepted_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot resend invitation that has already been accepted",
        )

    access.invitation_token, access.expires_at = _new_token()
    access.invited_at = datetime.utcnow()
    await db.commit()
    await db.refresh(access)
    response = ProjectAccessResponse.model_validate(access)

    inviter = await _load_user(db, current_user.db_user_id)
    await _send_invitation_email(db, inviter, access, project.name)

    return response


@router.post("/partners/{access_id}/cancel", response_model=SuccessResponse)
async def cancel_invitation(
    access_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Withdraw a pending invitation (owner only)."""
    access, _ = await _get_owned_access(db, access_id, current_user.db_user_id, "cancel invitations")
    if access.accepted_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot cancel invitation that has already been accepted. Use revoke instead.",
        )

    access.deleted_at = datetime.utcnow()
    access.invitation_token = None
    await db.commit()

    return SuccessResponse(success=True)
