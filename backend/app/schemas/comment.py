"""Comment schemas."""

from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.models.enums import CommentEntityType


class CommentCreate(BaseSchema):
    """Create a comment or a reply."""

    entity_type: CommentEntityType
    entity_id: UUID
    content: str = Field(..., min_length=1, max_length=2000)
    parent_comment_id: Optional[UUID] = None


class CommentUpdate(BaseSchema):
    """Edit own comment."""

    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseSchema, IDMixin, TimestampMixin):
    """Comment response with nested replies."""

    entity_type: CommentEntityType
    entity_id: UUID
    project_id: UUID
    user_id: UUID
    author_name: Optional[str] = None
    content: str
    parent_comment_id: Optional[UUID] = None
    replies: list["CommentResponse"] = []
