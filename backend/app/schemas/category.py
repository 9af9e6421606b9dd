"""Category schemas."""

from typing import Optional

from pydantic import Field

from app.schemas.base import BaseSchema
from app.models.enums import CategoryType


class CategoryCreate(BaseSchema):
    """Create a custom category."""

    type: CategoryType
    display_name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[str] = Field(None, max_length=100)


class CategoryResponse(BaseSchema):
    """Category response."""

    id: str
    type: CategoryType
    display_name: str
    parent_id: Optional[str] = None
    is_custom: bool = False
    is_archived: bool = False
