"""In-app notification fan-out.

Notifications go to everyone on a project except the user who triggered them.
Each created notification is handed to the email service; delivery problems
are logged and never fail the originating request.
"""

import logging
import re
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.comment import Comment
from app.models.cost import Cost
from app.models.document import Document
from app.models.enums import CommentEntityType, NotificationEntityType, NotificationType
from app.models.event import Event
from app.models.notification import Notification
from app.models.project import Project, ProjectAccess
from app.models.user import User
from app.services.email import EmailNotificationService
from app.services.email_templates import format_currency

logger = logging.getLogger(__name__)
settings = get_settings()

MENTION_PATTERN = re.compile(r"@(\w+)")


def cost_added_message(description: str, amount_cents: int, project_name: str) -> str:
    return f"New cost added: {description} ({format_currency(amount_cents)}) in {project_name}"


def large_expense_message(description: str, amount_cents: int, project_name: str) -> str:
    return f"Large expense alert: {description} ({format_currency(amount_cents)}) in {project_name}"


def document_uploaded_message(file_name: str, project_name: str) -> str:
    return f"New document uploaded: {file_name} in {project_name}"


def timeline_event_message(title: str, project_name: str) -> str:
    return f"New timeline event: {title} in {project_name}"


def partner_invited_message(inviter_name: str, project_name: str) -> str:
    return f"{inviter_name} invited you to collaborate on {project_name}"


def comment_added_message(commenter_name: str, entity_type: str, project_name: str) -> str:
    return f"{commenter_name} commented on {entity_type} in {project_name}"


def parse_mentions(content: str) -> list[str]:
    """Names mentioned as `@First_Last`, lowercased with underscores as spaces."""
    seen: list[str] = []
    for match in MENTION_PATTERN.findall(content):
        name = match.replace("_", " ").lower()
        if name not in seen:
            seen.append(name)
    return seen


def is_large_expense(amount_cents: int) -> bool:
    return amount_cents >= settings.large_expense_threshold_cents


class NotificationService:
    """Creates notifications and forwards them to email delivery."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailNotificationService] = None):
        self.db = db
        self.email_service = email_service or EmailNotificationService(db)

    async def create_notification(
        self,
        user_id: UUID,
        project_id: Optional[UUID],
        notification_type: NotificationType,
        entity_type: NotificationEntityType,
        entity_id: UUID,
        message: str,
        project_name: str = "",
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            project_id=project_id,
            type=notification_type,
            entity_type=entity_type,
            entity_id=entity_id,
            message=message,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()

        await self._dispatch_email(notification, project_name)
        return notification

    async def _dispatch_email(self, notification: Notification, project_name: str) -> None:
        try:
            async with self.db.begin_nested():
                await self.email_service.dispatch(notification, project_name)
        except Exception as e:
            logger.error(
                f"[NOTIFY] Email dispatch failed for notification {notification.id}: {e}"
            )

    async def get_project_member_ids(self, project: Project) -> list[UUID]:
        """Owner plus partners with accepted, non-revoked access."""
        result = await self.db.execute(
            select(ProjectAccess.user_id).where(
                ProjectAccess.project_id == project.id,
                ProjectAccess.user_id.is_not(None),
                ProjectAccess.accepted_at.is_not(None),
                ProjectAccess.deleted_at.is_(None),
            )
        )
        member_ids = [project.owner_id]
        for user_id in result.scalars().all():
            if user_id not in member_ids:
                member_ids.append(user_id)
        return member_ids

    async def notify_users(
        self,
        user_ids: Iterable[UUID],
        project: Project,
        notification_type: NotificationType,
        entity_type: NotificationEntityType,
        entity_id: UUID,
        message: str,
    ) -> list[Notification]:
        created = []
        for user_id in user_ids:
            created.append(
                await self.create_notification(
                    user_id,
                    project.id,
                    notification_type,
                    entity_type,
                    entity_id,
                    message,
                    project_name=project.name,
                )
            )
        return created

    async def notify_project_members(
        self,
        project: Project,
        actor_id: UUID,
        notification_type: NotificationType,
        entity_type: NotificationEntityType,
        entity_id: UUID,
        message: str,
    ) -> list[Notification]:
        """Notify every project member except `actor_id`."""
        member_ids = await self.get_project_member_ids(project)
        recipients = [uid for uid in member_ids if uid != actor_id]
        return await self.notify_users(
            recipients, project, notification_type, entity_type, entity_id, message
        )

    async def notify_cost_added(self, project: Project, cost: Cost, actor_id: UUID) -> list[Notification]:
        created = await self.notify_project_members(
            project,
            actor_id,
            NotificationType.COST_ADDED,
            NotificationEntityType.COST,
            cost.id,
            cost_added_message(cost.description, cost.amount, project.name),
        )
        if is_large_expense(cost.amount):
            created += await self.notify_project_members(
                project,
                actor_id,
                NotificationType.LARGE_EXPENSE,
                NotificationEntityType.COST,
                cost.id,
                large_expense_message(cost.description, cost.amount, project.name),
            )
        return created

    async def notify_document_uploaded(
        self, project: Project, document: Document, actor_id: UUID
    ) -> list[Notification]:
        return await self.notify_project_members(
            project,
            actor_id,
            NotificationType.DOCUMENT_UPLOADED,
            NotificationEntityType.DOCUMENT,
            document.id,
            document_uploaded_message(document.file_name, project.name),
        )

    async def notify_timeline_event(
        self, project: Project, event: Event, actor_id: UUID
    ) -> list[Notification]:
        return await self.notify_project_members(
            project,
            actor_id,
            NotificationType.TIMELINE_EVENT,
            NotificationEntityType.EVENT,
            event.id,
            timeline_event_message(event.title, project.name),
        )

    async def notify_partner_invited(
        self, project: Project, inviter: User, invitee_id: UUID
    ) -> Notification:
        return await self.create_notification(
            invitee_id,
            project.id,
            NotificationType.PARTNER_INVITED,
            NotificationEntityType.PROJECT,
            project.id,
            partner_invited_message(inviter.full_name or inviter.email, project.name),
            project_name=project.name,
        )

    async def resolve_mentions(self, names: list[str], candidate_ids: list[UUID]) -> list[UUID]:
        """Project members whose "first last" name matches a mention."""
        if not names or not candidate_ids:
            return []
        full_name = func.lower(func.trim(User.first_name + " " + User.last_name))
        result = await self.db.execute(
            select(User.id).where(
                User.id.in_(candidate_ids),
                User.deleted_at.is_(None),
                full_name.in_(names),
            )
        )
        return list(result.scalars().all())

    async def notify_comment_added(
        self,
        project: Project,
        comment: Comment,
        author: User,
        entity_creator_id: Optional[UUID],
    ) -> list[Notification]:
        """Notify previous commenters, the entity's creator and @mentioned members."""
        previous = await self.db.execute(
            select(Comment.user_id)
            .where(
                Comment.entity_type == comment.entity_type,
                Comment.entity_id == comment.entity_id,
                Comment.deleted_at.is_(None),
            )
            .distinct()
        )
        recipients: list[UUID] = list(previous.scalars().all())

        if entity_creator_id and entity_creator_id not in recipients:
            recipients.append(entity_creator_id)

        mentions = parse_mentions(comment.content)
        if mentions:
            member_ids = await self.get_project_member_ids(project)
            for user_id in await self.resolve_mentions(mentions, member_ids):
                if user_id not in recipients:
                    recipients.append(user_id)

        recipients = [uid for uid in recipients if uid != author.id]
        entity_label = (
            comment.entity_type.value
            if isinstance(comment.entity_type, CommentEntityType)
            else str(comment.entity_type)
        )
        message = comment_added_message(author.full_name or author.email, entity_label, project.name)
        return await self.notify_users(
            recipients,
            project,
            NotificationType.COMMENT_ADDED,
            _comment_notification_entity(comment.entity_type),
            comment.entity_id,
            message,
        )


def _comment_notification_entity(entity_type: CommentEntityType) -> NotificationEntityType:
    return NotificationEntityType(CommentEntityType(entity_type).value)


async def notify_safely(db: AsyncSession, coro, description: str) -> None:
    """Run and commit a notification coroutine after the main write has committed.

    Failures are rolled back and logged so the caller's request still succeeds.
    """
    try:
        await coro
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"[NOTIFY] Failed to send {description} notifications: {e}")
