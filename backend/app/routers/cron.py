"""Cron router - scheduled jobs triggered by an external scheduler."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import verify_cron_secret
from app.models.enums import DigestType
from app.schemas.notification import CleanupResponse
from app.services.digest import DigestService
from app.services.notification_cleanup import (
    cleanup_old_notifications,
    count_old_notifications,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post("/process-digests")
async def process_digests(
    digest_type: Optional[DigestType] = None,
    db: AsyncSession = Depends(get_db),
):
    """Send every due daily/weekly digest."""
    service = DigestService(db)
    run = await service.process(digest_type)
    await db.commit()

    return run.as_dict()


@router.post("/cleanup-notifications", response_model=CleanupResponse)
async def cleanup_notifications(
    dry_run: bool = False,
    days: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Delete notifications past the retention window, or count them on a dry run."""
    if dry_run:
        result = await count_old_notifications(db, days)
        logger.info(f"[CLEANUP] Dry run: {result.deleted} notifications older than {result.cutoff.isoformat()}")
    else:
        result = await cleanup_old_notifications(db, days)
        await db.commit()

    return CleanupResponse(deleted=result.deleted, dry_run=result.dry_run, cutoff=result.cutoff)
