"""Phase schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.models.enums import PhaseStatus, PhaseTemplateType


class PhaseTemplateRequest(BaseSchema):
    """Initialize a project's phases from a template."""

    template_type: PhaseTemplateType


class PhaseCreate(BaseSchema):
    """Create a custom phase."""

    name: str = Field(..., min_length=1, max_length=255)
    phase_number: Optional[int] = Field(None, ge=1)
    phase_type: Optional[str] = Field(None, max_length=100)
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    description: Optional[str] = None


class PhaseUpdate(BaseSchema):
    """Update phase."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phase_type: Optional[str] = Field(None, max_length=100)
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[PhaseStatus] = None
    description: Optional[str] = None


class PhaseProgressUpdate(BaseSchema):
    """Set progress; status is derived."""

    progress: int = Field(..., ge=0, le=100)


class PhaseReorder(BaseSchema):
    """New ordering of every phase in a project."""

    phase_ids: list[UUID] = Field(..., min_length=1)


class PhaseResponse(BaseSchema, IDMixin, TimestampMixin):
    """Phase response."""

    project_id: UUID
    name: str
    phase_number: int
    phase_type: Optional[str] = None
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    progress: int
    status: PhaseStatus
    description: Optional[str] = None
