"""Retention cleanup for old notifications."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.notification import Notification

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class CleanupResult:
    deleted: int
    cutoff: datetime
    dry_run: bool


def retention_cutoff(days: Optional[int] = None, now: Optional[datetime] = None) -> datetime:
    if days is None:
        days = settings.notification_retention_days
    if days < 1:
        raise ValueError(f"Retention window must be at least one day, got {days}")
    return (now or datetime.utcnow()) - timedelta(days=days)


async def count_old_notifications(
    db: AsyncSession,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CleanupResult:
    """How many notifications a cleanup would delete."""
    cutoff = retention_cutoff(days, now)
    result = await db.execute(
        select(func.count(Notification.id)).where(Notification.created_at < cutoff)
    )
    return CleanupResult(deleted=result.scalar() or 0, cutoff=cutoff, dry_run=True)


async def cleanup_old_notifications(
    db: AsyncSession,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CleanupResult:
    """Delete notifications older than the retention window. Caller commits.

    Queued digest rows for those notifications go with them via ON DELETE CASCADE.
    """
    cutoff = retention_cutoff(days, now)
    logger.info(f"[CLEANUP] Deleting notifications created before {cutoff.isoformat()}")

    result = await db.execute(
        delete(Notification)
        .where(Notification.created_at < cutoff)
        .returning(Notification.id)
    )
    deleted = len(result.scalars().all())

    logger.info(f"[CLEANUP] Deleted {deleted} notifications")
    return CleanupResult(deleted=deleted, cutoff=cutoff, dry_run=False)
