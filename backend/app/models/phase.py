"""Construction phase model."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Integer, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.enums import PhaseStatus, db_enum


class Phase(Base):
    """A stage of construction (e.g. Foundation, Framing, MEP) with progress tracking."""

    __tablename__ = "phases"

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

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    phase_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    planned_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    planned_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    actual_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    actual_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[PhaseStatus] = mapped_column(
        db_enum(PhaseStatus, "phasestatus"),
        default=PhaseStatus.PLANNED,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_phase_progress_range"),
    )
