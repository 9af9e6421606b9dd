"""Digest queue processing.

Queued notifications are claimed once due, grouped per user and project, and
sent as one digest email per user. Every claimed queue row for a user is marked
processed after their email goes out. A failure for one user leaves that
user's rows pending for the next run.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.email import DigestQueue
from app.models.enums import DigestFrequency, DigestType, EmailStatus
from app.models.notification import Notification, NotificationPreference
from app.models.project import Project
from app.models.user import User
from app.services.email import DigestDeliveryError, EmailNotificationService
from app.services.email_templates import DigestItem, DigestProjectGroup

logger = logging.getLogger(__name__)


@dataclass
class DigestRunResult:
    users_processed: int = 0
    emails_sent: int = 0
    queue_items_processed: int = 0
    failures: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "users_processed": self.users_processed,
            "emails_sent": self.emails_sent,
            "queue_items_processed": self.queue_items_processed,
            "failures": self.failures,
        }


def group_by_project(rows: list[tuple[Notification, Optional[str]]]) -> list[DigestProjectGroup]:
    """Group (notification, project_name) rows into per-project digest sections.

    Sections keep first-seen order; items inside each section are oldest first.
    """
    groups: dict[Optional[UUID], DigestProjectGroup] = {}
    for notification, project_name in sorted(rows, key=lambda r: r[0].created_at):
        key = notification.project_id
        if key not in groups:
            groups[key] = DigestProjectGroup(
                project_id=key,
                project_name=project_name or "Unknown Project",
            )
        groups[key].items.append(DigestItem(notification.message, notification.created_at))
    return list(groups.values())


class DigestService:
    """Claims due digest queue rows and delivers them."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailNotificationService] = None):
        self.db = db
        self.email_service = email_service or EmailNotificationService(db)

    async def claim_due(
        self,
        digest_type: Optional[DigestType] = None,
        now: Optional[datetime] = None,
        limit: int = 1000,
    ) -> list[DigestQueue]:
        """Unprocessed queue rows whose `scheduled_for` has passed.

        Rows are locked for the transaction so concurrent runs skip them.
        """
        query = select(DigestQueue).where(
            DigestQueue.processed.is_(False),
            DigestQueue.scheduled_for <= (now or datetime.utcnow()),
        )
        if digest_type:
            query = query.where(DigestQueue.digest_type == digest_type)

        query = (
            query.order_by(DigestQueue.scheduled_for)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_processed(self, queue_ids: list[UUID], now: Optional[datetime] = None) -> None:
        if not queue_ids:
            return
        await self.db.execute(
            update(DigestQueue)
            .where(DigestQueue.id.in_(queue_ids))
            .values(processed=True, processed_at=now or datetime.utcnow())
        )

    async def _load_notifications(
        self, notification_ids: list[UUID]
    ) -> dict[UUID, tuple[Notification, Optional[str]]]:
        result = await self.db.execute(
            select(Notification, Project.name)
            .outerjoin(Project, Project.id == Notification.project_id)
            .where(Notification.id.in_(notification_ids))
        )
        return {n.id: (n, name) for n, name in result.all()}

    async def _load_recipient(self, user_id: UUID) -> tuple[Optional[User], Optional[NotificationPreference]]:
        result = await self.db.execute(
            select(User, NotificationPreference)
            .outerjoin(NotificationPreference, NotificationPreference.user_id == User.id)
            .where(User.id == user_id, User.deleted_at.is_(None))
        )
        row = result.first()
        if row is None:
            return None, None
        return row[0], row[1]

    async def process(
        self,
        digest_type: Optional[DigestType] = None,
        now: Optional[datetime] = None,
    ) -> DigestRunResult:
        """Send every due digest. Caller commits."""
        now = now or datetime.utcnow()
        run = DigestRunResult()

        entries = await self.claim_due(digest_type, now)
        if not entries:
            logger.info("[DIGEST] No digests to process")
            return run

        batches: dict[tuple[UUID, DigestType], list[DigestQueue]] = defaultdict(list)
        for entry in entries:
            batches[(entry.user_id, entry.digest_type)].append(entry)

        notifications = await self._load_notifications(list({e.notification_id for e in entries}))

        for (user_id, batch_type), batch in batches.items():
            queue_ids = [e.id for e in batch]
            try:
                async with self.db.begin_nested():
                    sent = await self._deliver(user_id, batch_type, batch, notifications)
                    await self.mark_processed(queue_ids, now)
            except DigestDeliveryError as e:
                logger.error(f"[DIGEST] Failed to send {batch_type.value} digest to user {user_id}: {e}")
                await self.email_service.log_email(
                    e.user.id, e.email_type, e.user.email, e.subject,
                    EmailStatus.FAILED, error=e.reason,
                )
                run.failures.append(str(user_id))
                continue
            except Exception as e:
                logger.error(f"[DIGEST] Failed to send {batch_type.value} digest to user {user_id}: {e}")
                run.failures.append(str(user_id))
                continue

            run.users_processed += 1
            run.queue_items_processed += len(queue_ids)
            if sent:
                run.emails_sent += 1

        logger.info(
            f"[DIGEST] Processed {run.queue_items_processed} queue items, "
            f"sent {run.emails_sent} emails, {len(run.failures)} failures"
        )
        return run

    async def _deliver(
        self,
        user_id: UUID,
        digest_type: DigestType,
        batch: list[DigestQueue],
        notifications: dict[UUID, tuple[Notification, Optional[str]]],
    ) -> bool:
        """Send one user's digest. Returns False when there was nothing to send."""
        user, prefs = await self._load_recipient(user_id)
        if user is None:
            return False
        if prefs is not None and prefs.email_digest_frequency == DigestFrequency.NEVER:
            return False

        rows = [notifications[e.notification_id] for e in batch if e.notification_id in notifications]
        if not rows:
            return False

        await self.email_service.send_digest(user, digest_type, group_by_project(rows))
        return True
