"""Vendor rating and metrics schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class VendorRatingCreate(BaseSchema):
    """Rate a vendor for a project."""

    contact_id: UUID
    project_id: UUID
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=500)


class VendorRatingUpdate(BaseSchema):
    """Update own rating."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = Field(None, max_length=500)


class VendorRatingResponse(BaseSchema, IDMixin, TimestampMixin):
    """Vendor rating response."""

    user_id: UUID
    contact_id: UUID
    project_id: UUID
    rating: int
    review: Optional[str] = None


class CategorySpend(BaseSchema):
    category_id: str
    display_name: Optional[str] = None
    total: int


class VendorMetrics(BaseSchema):
    """Aggregated spend and rating statistics for one vendor."""

    contact_id: UUID
    name: str
    company: Optional[str] = None
    total_projects: int
    total_spent: int
    average_cost: int
    frequency: float
    last_used: Optional[datetime] = None
    top_categories: list[CategorySpend] = []
    average_rating: Optional[float] = None
    rating_count: int = 0


class VendorCompareRequest(BaseSchema):
    """Compare up to five vendors side by side."""

    contact_ids: list[UUID] = Field(..., min_length=1, max_length=5)
