"""Contact schemas."""

from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.schemas.category import CategoryResponse


class ContactCreate(BaseSchema):
    """Create a new contact."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    category_id: str = Field(..., min_length=1)
    notes: Optional[str] = None
    project_id: Optional[UUID] = None


class ContactUpdate(BaseSchema):
    """Update contact."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    category_id: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None


class ContactResponse(BaseSchema, IDMixin, TimestampMixin):
    """Contact response."""

    first_name: str
    last_name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    category_id: str
    notes: Optional[str] = None
    category: Optional[CategoryResponse] = None
