"""Base schema utilities."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def store_naive_utc(cls, v):
        """Timestamps are stored as naive UTC."""
        if isinstance(v, datetime) and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime
    updated_at: Optional[datetime] = None


class SoftDeleteMixin(BaseModel):
    """Mixin exposing the soft-delete marker."""

    deleted_at: Optional[datetime] = None


class IDMixin(BaseModel):
    """Mixin for UUID id field."""

    id: UUID


class SuccessResponse(BaseSchema):
    """Generic acknowledgement."""

    success: bool = True


class BulkOperationResult(BaseSchema):
    """Outcome of a best-effort bulk operation."""

    succeeded: list[UUID] = []
    failed: list[UUID] = []
    errors: list[str] = []
