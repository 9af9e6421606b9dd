"""Category model (predefined + user-defined)."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.enums import CategoryType, db_enum


class Category(Base):
    """Classification for contacts, costs, documents and events.

    Predefined categories are seeded by migration with slug ids
    (e.g. "materials", "plumber"); custom ones get "custom_<hex>" ids.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    type: Mapped[CategoryType] = mapped_column(
        db_enum(CategoryType, "categorytype"),
        nullable=False,
        index=True,
    )
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    is_custom: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("id", "type", name="uq_categories_id_type"),
    )
