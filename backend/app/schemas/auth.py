"""Auth and user profile schemas."""

from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class RegisterRequest(BaseSchema):
    """Create the local user row for an authenticated Firebase identity."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserResponse(BaseSchema, IDMixin, TimestampMixin):
    """User response."""

    email: EmailStr
    first_name: str
    last_name: str
    email_verified: bool


class CurrentUserResponse(BaseSchema):
    """Current user response."""

    uid: str
    email: Optional[str] = None
    email_verified: bool
    db_user_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    registered: bool = False
