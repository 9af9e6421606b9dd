"""Partner invitation schemas."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import EmailStr

from app.schemas.base import BaseSchema, IDMixin
from app.models.enums import AccessPermission


class PartnerInvite(BaseSchema):
    """Invite a partner to a project."""

    email: EmailStr
    permission: AccessPermission = AccessPermission.READ


class PartnerAccept(BaseSchema):
    """Accept an invitation."""

    token: str


class ProjectAccessResponse(BaseSchema, IDMixin):
    """Access grant / invitation response."""

    project_id: UUID
    user_id: Optional[UUID] = None
    invited_email: Optional[str] = None
    permission: AccessPermission
    invited_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None


class InviteResult(BaseSchema):
    """Outcome of an invite call."""

    status: str
    message: str
    access: Optional[ProjectAccessResponse] = None
    access_id: Optional[UUID] = None
    can_resend: bool = False


class InvitationDetails(BaseSchema):
    """Public view of a pending invitation."""

    project_name: str
    inviter_name: str
    invited_email: Optional[str] = None
    permission: AccessPermission
    expires_at: Optional[datetime] = None


class AcceptResult(BaseSchema):
    success: bool = True
    message: str
    project_id: UUID


class PartnerUser(BaseSchema):
    first_name: str
    last_name: str


class PartnerListItem(BaseSchema):
    """Invitation or grant as shown to the project owner."""

    id: UUID
    email: str
    status: Literal["pending", "accepted", "expired"]
    permission: AccessPermission
    invited_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    days_remaining: Optional[int] = None
    user: Optional[PartnerUser] = None
