"""Timeline event schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class EventCreate(BaseSchema):
    """Create a timeline event."""

    project_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    date: datetime
    category_id: str = Field(..., min_length=1)


class EventUpdate(BaseSchema):
    """Update a timeline event."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[datetime] = None
    category_id: Optional[str] = Field(None, min_length=1)


class EventResponse(BaseSchema, IDMixin, TimestampMixin):
    """Event response."""

    project_id: UUID
    title: str
    description: Optional[str] = None
    date: datetime
    category_id: str
    created_by_id: UUID
