"""Cost schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.schemas.category import CategoryResponse


class CostSortField(str, Enum):
    DATE = "date"
    AMOUNT = "amount"
    CONTACT = "contact"
    CATEGORY = "category"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _reject_future(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None:
        now = datetime.now(value.tzinfo) if value.tzinfo else datetime.utcnow()
        if value > now:
            raise ValueError("Cost date cannot be in the future")
    return value


class CostCreate(BaseSchema):
    """Create a new cost. Amount is INTEGER CENTS."""

    project_id: UUID
    amount: int = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    date: datetime
    contact_id: Optional[UUID] = None

    @field_validator("date")
    @classmethod
    def date_not_in_future(cls, v: datetime) -> datetime:
        return _reject_future(v)


class CostUpdate(BaseSchema):
    """Update cost."""

    amount: Optional[int] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1)
    category_id: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    contact_id: Optional[UUID] = None

    @field_validator("date")
    @classmethod
    def date_not_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _reject_future(v)


class CostFilters(BaseSchema):
    """Filters shared by cost list and total queries."""

    category_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search_text: Optional[str] = Field(None, max_length=200)
    min_amount: Optional[int] = Field(None, ge=0)
    max_amount: Optional[int] = Field(None, ge=0)
    contact_id: Optional[UUID] = None
    contact_name_search: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.min_amount is not None and self.max_amount is not None and self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot exceed max_amount")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date cannot be after end_date")
        return self


class CostContactSummary(BaseSchema):
    """Contact embedded in a cost row."""

    id: UUID
    first_name: str
    last_name: Optional[str] = None
    company: Optional[str] = None


class CostResponse(BaseSchema, IDMixin, TimestampMixin):
    """Cost response."""

    project_id: UUID
    amount: int
    description: str
    category_id: str
    date: datetime
    contact_id: Optional[UUID] = None
    created_by_id: UUID
    category: Optional[CategoryResponse] = None
    contact: Optional[CostContactSummary] = None


class CostTotalResponse(BaseSchema):
    """Sum of matching costs, in cents."""

    total: int


class CostDocumentLink(BaseSchema):
    """Attach documents to a cost."""

    document_ids: list[UUID] = Field(..., min_length=1)
