"""Security event and audit log schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin
from app.models.enums import AuditAction, SecurityEventType


class SecurityEventCreate(BaseSchema):
    """Record a two-factor event reported by the client after the identity provider call."""

    event_type: SecurityEventType
    metadata: Optional[dict[str, Any]] = None


class SecurityEventResponse(BaseSchema, IDMixin):
    """Security event response."""

    user_id: UUID
    event_type: SecurityEventType
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="metadata_")
    created_at: datetime


class AuditLogResponse(BaseSchema, IDMixin):
    """Audit log entry."""

    user_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    action: AuditAction
    entity_type: str
    entity_id: UUID
    changes: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="metadata_")
    timestamp: datetime
