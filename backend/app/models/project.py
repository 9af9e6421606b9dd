"""Project, Address and ProjectAccess models."""

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
from app.models.enums import (
    AccessPermission,
    AustralianState,
    ProjectStatus,
    ProjectType,
    db_enum,
)

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.cost import Cost
    from app.models.document import Document


class Address(Base):
    """Australian street address."""

    __tablename__ = "addresses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    street_number: Mapped[str] = mapped_column(String(20), nullable=False)
    street_name: Mapped[str] = mapped_column(String(255), nullable=False)
    street_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    suburb: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[AustralianState] = mapped_column(
        db_enum(AustralianState, "australianstate"),
        nullable=False,
    )
    postcode: Mapped[str] = mapped_column(String(4), nullable=False)
    country: Mapped[str] = mapped_column(String(50), default="Australia")
    formatted_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class Project(Base):
    """A construction/renovation project owned by a single user."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    address_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("addresses.id", ondelete="SET NULL"),
        nullable=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    project_type: Mapped[ProjectType] = mapped_column(
        db_enum(ProjectType, "projecttype"),
        nullable=False,
    )
    status: Mapped[ProjectStatus] = mapped_column(
        db_enum(ProjectStatus, "projectstatus"),
        default=ProjectStatus.PLANNING,
        nullable=False,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Money as integer cents
    total_budget: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    search_vector = mapped_column(
        TSVECTOR,
        Computed(
            "to_tsvector('english', coalesce(name, '') || ' ' || coalesce(description, ''))",
            persisted=True,
        ),
        deferred=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    owner: Mapped["User"] = relationship(
        "User", back_populates="owned_projects", foreign_keys=[owner_id]
    )
    address: Mapped[Optional["Address"]] = relationship("Address", lazy="joined")
    access_grants: Mapped[list["ProjectAccess"]] = relationship(
        "ProjectAccess", back_populates="project", cascade="all, delete-orphan"
    )
    costs: Mapped[list["Cost"]] = relationship("Cost", back_populates="project")
    documents: Mapped[list["Document"]] = relationship("Document", back_populates="project")

    __table_args__ = (
        CheckConstraint(
            "total_budget IS NULL OR total_budget > 0",
            name="ck_project_budget_positive",
        ),
        Index("ix_projects_search_vector", "search_vector", postgresql_using="gin"),
    )


class ProjectAccess(Base):
    """Partner access grant (or pending invitation) on a project."""

    __tablename__ = "project_access"

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
    # NULL until the invitation is accepted
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    invited_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    permission: Mapped[AccessPermission] = mapped_column(
        db_enum(AccessPermission, "accesspermission"),
        default=AccessPermission.READ,
        nullable=False,
    )

    invited_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    invited_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    invitation_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="access_grants")
