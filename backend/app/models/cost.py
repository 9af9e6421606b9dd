"""Cost model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Computed,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import TSVECTOR, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.project import Project
    from app.models.category import Category
    from app.models.contact import Contact


class Cost(Base):
    """A cost incurred on a project. Money as INTEGER CENTS."""

    __tablename__ = "costs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    contact_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )

    search_vector = mapped_column(
        TSVECTOR,
        Computed("to_tsvector('english', coalesce(description, ''))", persisted=True),
        deferred=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="costs")
    category: Mapped["Category"] = relationship("Category", lazy="joined")
    contact: Mapped[Optional["Contact"]] = relationship("Contact", lazy="joined")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cost_amount_positive"),
        Index("ix_costs_search_vector", "search_vector", postgresql_using="gin"),
    )
