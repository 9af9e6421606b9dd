"""Document schemas."""

from typing import Literal, Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class DocumentUpload(BaseSchema):
    """Upload a document as base64 (optionally a data: URL)."""

    project_id: UUID
    file_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=255)
    file_data: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    cost_id: Optional[UUID] = None


class DocumentResponse(BaseSchema, IDMixin, TimestampMixin):
    """Document response."""

    project_id: UUID
    file_name: str
    file_size: int
    mime_type: str
    category_id: str
    uploaded_by_id: Optional[UUID] = None


class BulkDocumentDelete(BaseSchema):
    """Delete several documents."""

    document_ids: list[UUID] = Field(..., min_length=1, max_length=100)


class BulkDocumentLink(BaseSchema):
    """Link several documents to one cost, contact or event."""

    document_ids: list[UUID] = Field(..., min_length=1, max_length=100)
    entity_type: Literal["cost", "contact", "event"]
    entity_id: UUID
