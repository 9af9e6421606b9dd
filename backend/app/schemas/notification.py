"""Notification and notification preference schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, IDMixin
from app.models.enums import DigestFrequency, NotificationEntityType, NotificationType


class NotificationProject(BaseSchema):
    """Project summary embedded in a notification."""

    id: UUID
    name: str


class NotificationResponse(BaseSchema, IDMixin):
    """Notification response."""

    user_id: UUID
    project_id: Optional[UUID] = None
    type: NotificationType
    entity_type: NotificationEntityType
    entity_id: UUID
    message: str
    read: bool
    created_at: datetime
    project: Optional[NotificationProject] = None


class UnreadCountResponse(BaseSchema):
    count: int


class MarkAllReadResponse(BaseSchema):
    count: int


class CleanupResponse(BaseSchema):
    """Result of a notification retention sweep."""

    deleted: int
    dry_run: bool = False
    cutoff: datetime


class NotificationPreferenceUpdate(BaseSchema):
    """Partial update of email notification preferences."""

    email_on_cost: Optional[bool] = None
    email_on_large_expense: Optional[bool] = None
    email_on_document: Optional[bool] = None
    email_on_timeline: Optional[bool] = None
    email_on_comment: Optional[bool] = None
    email_digest_frequency: Optional[DigestFrequency] = None
    timezone: Optional[str] = Field(None, max_length=50)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class NotificationPreferenceResponse(BaseSchema):
    """Notification preference response."""

    user_id: UUID
    email_on_cost: bool
    email_on_large_expense: bool
    email_on_document: bool
    email_on_timeline: bool
    email_on_comment: bool
    email_digest_frequency: DigestFrequency
    timezone: str
