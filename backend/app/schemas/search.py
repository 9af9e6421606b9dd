"""Global search schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema
from app.models.enums import SearchEntityType


class SearchRequest(BaseSchema):
    """Full-text search across accessible projects."""

    query: str = Field(..., min_length=2, max_length=100)
    entity_types: Optional[list[SearchEntityType]] = None
    project_id: Optional[UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = Field(50, ge=1, le=100)


class ProjectContext(BaseSchema):
    project_id: UUID
    project_name: str


class SearchResult(BaseSchema):
    """One ranked hit."""

    id: UUID
    entity_type: SearchEntityType
    title: str
    preview: str
    rank: float
    project_context: Optional[ProjectContext] = None
    matched_fields: list[str] = []
    created_at: Optional[datetime] = None


class SearchResponse(BaseSchema):
    results: list[SearchResult] = []
    total_count: int = 0
