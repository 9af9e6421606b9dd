"""Notification and notification preference models."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, Boolean, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import (
    DigestFrequency,
    NotificationEntityType,
    NotificationType,
    db_enum,
)

if TYPE_CHECKING:
    from app.models.user import User


class Notification(Base):
    """In-app notification about activity on a project."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
    )

    type: Mapped[NotificationType] = mapped_column(
        db_enum(NotificationType, "notificationtype"),
        nullable=False,
    )
    entity_type: Mapped[NotificationEntityType] = mapped_column(
        db_enum(NotificationEntityType, "notificationentitytype"),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
        Index("ix_notifications_created_at", "created_at"),
        Index("ix_notifications_project_id", "project_id"),
    )


class NotificationPreference(Base):
    """Per-user email notification settings."""

    __tablename__ = "notification_preferences"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    email_on_cost: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_on_large_expense: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_on_document: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_on_timeline: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_on_comment: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_digest_frequency: Mapped[DigestFrequency] = mapped_column(
        db_enum(DigestFrequency, "digestfrequency"),
        default=DigestFrequency.IMMEDIATE,
        nullable=False,
    )
    timezone: Mapped[str] = mapped_column(String(50), default="Australia/Sydney", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="notification_preference")
