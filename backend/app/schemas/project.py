"""Project and address schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, model_validator

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.models.enums import AccessLevel, AustralianState, ProjectStatus, ProjectType


class AddressInput(BaseSchema):
    """Australian street address."""

    street_number: str = Field(..., min_length=1, max_length=20)
    street_name: str = Field(..., min_length=1, max_length=255)
    street_type: Optional[str] = Field(None, max_length=50)
    suburb: str = Field(..., min_length=1, max_length=100)
    state: AustralianState
    postcode: str = Field(..., pattern=r"^\d{4}$")
    country: str = "Australia"


class AddressResponse(AddressInput, IDMixin):
    """Address response."""

    formatted_address: Optional[str] = None


def format_address(address: AddressInput) -> str:
    """Render an address as "12 Smith Street, Suburb, NSW 2000"."""
    street_type = f" {address.street_type}" if address.street_type else ""
    state = address.state.value if isinstance(address.state, AustralianState) else address.state
    return (
        f"{address.street_number} {address.street_name}{street_type}, "
        f"{address.suburb}, {state} {address.postcode}"
    )


class ProjectCreate(BaseSchema):
    """Create a new project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    project_type: ProjectType
    address: AddressInput
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_budget: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def validate_dates(self):
        """End date cannot precede start date."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ProjectUpdate(BaseSchema):
    """Update project."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_type: Optional[ProjectType] = None
    status: Optional[ProjectStatus] = None
    address: Optional[AddressInput] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_budget: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ProjectResponse(BaseSchema, IDMixin, TimestampMixin):
    """Project response."""

    owner_id: UUID
    name: str
    description: Optional[str] = None
    project_type: ProjectType
    status: ProjectStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_budget: Optional[int] = None
    address: Optional[AddressResponse] = None
    access_level: AccessLevel = AccessLevel.READ


class ProjectStatsResponse(BaseSchema):
    """Running totals for a project."""

    project_id: UUID
    total_budget: Optional[int] = None
    total_spent: int
    budget_remaining: Optional[int] = None
    budget_used_percent: Optional[float] = None
    cost_count: int
    document_count: int
