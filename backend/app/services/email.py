"""Email delivery: Resend client, rate limiting, unsubscribe links and preference routing.

A notification reaches a user's inbox in one of three ways depending on their
`email_digest_frequency`:

- immediate: sent right away through Resend, subject to the hourly rate limit
- daily/weekly: queued in `digest_queue` for the next 08:00 local time
- never: not emailed at all

Large-expense alerts skip both the digest queue and the rate limit.
"""

import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.email import DigestQueue, EmailLog
from app.models.enums import DigestFrequency, DigestType, EmailStatus, NotificationType
from app.models.notification import Notification, NotificationPreference
from app.models.user import User
from app.services.email_templates import (
    DigestProjectGroup,
    render_digest_email,
    render_notification_email,
    render_partner_invitation_email,
)

logger = logging.getLogger(__name__)
settings = get_settings()

UNSUBSCRIBE_ALGORITHM = "HS256"
UNSUBSCRIBE_ISSUER = "real-estate-portfolio"
UNSUBSCRIBE_AUDIENCE = "user"
UNSUBSCRIBE_PURPOSE = "unsubscribe"

DIGEST_HOUR = 8

# Preference toggle gating each notification type's email
EMAIL_TOGGLES = {
    NotificationType.COST_ADDED: "email_on_cost",
    NotificationType.LARGE_EXPENSE: "email_on_large_expense",
    NotificationType.DOCUMENT_UPLOADED: "email_on_document",
    NotificationType.TIMELINE_EVENT: "email_on_timeline",
    NotificationType.COMMENT_ADDED: "email_on_comment",
}


class EmailDeliveryError(Exception):
    """Resend rejected or failed to accept a message."""


class DigestDeliveryError(EmailDeliveryError):
    """A digest email failed; carries what is needed to log the attempt."""

    def __init__(self, user: User, email_type: str, subject: str, reason: str):
        super().__init__(reason)
        self.user = user
        self.email_type = email_type
        self.subject = subject
        self.reason = reason


class ResendClient:
    """Thin async client for the Resend HTTP API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sender: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.base_url = (base_url or settings.resend_api_url).rstrip("/")
        self.sender = sender or settings.email_from

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> Optional[str]:
        """Send one email and return Resend's message id.

        Without an API key the message is logged instead of sent and None is returned.
        """
        if not self.configured:
            logger.info(f"[EMAIL] Resend not configured, skipping send to {to}: {subject}")
            return None

        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}/emails",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=10.0,
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Resend request failed: {e}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Resend returned {response.status_code}: {response.text[:200]}"
            )
        return response.json().get("id")


class EmailRateLimiter:
    """Per-user sliding-window limit on immediate emails. In-memory only."""

    def __init__(self, max_per_window: int = 10, window: timedelta = timedelta(hours=1)):
        self.max_per_window = max_per_window
        self.window = window
        self._sent: dict[str, deque[datetime]] = {}

    def _prune(self, key: str, now: datetime) -> deque[datetime]:
        history = self._sent.get(key)
        if history is None:
            return deque()
        cutoff = now - self.window
        while history and history[0] <= cutoff:
            history.popleft()
        if not history:
            del self._sent[key]
        return history

    def can_send(
        self,
        user_id: UUID | str,
        is_large_expense: bool = False,
        now: Optional[datetime] = None,
    ) -> bool:
        """Record and allow a send, or refuse when the window is full."""
        if is_large_expense:
            return True

        now = now or datetime.utcnow()
        key = str(user_id)
        history = self._prune(key, now)
        if len(history) >= self.max_per_window:
            return False
        history.append(now)
        self._sent[key] = history
        return True

    def current_count(self, user_id: UUID | str, now: Optional[datetime] = None) -> int:
        return len(self._prune(str(user_id), now or datetime.utcnow()))

    def reset(self, user_id: Optional[UUID | str] = None) -> None:
        if user_id is None:
            self._sent.clear()
        else:
            self._sent.pop(str(user_id), None)


email_rate_limiter = EmailRateLimiter(max_per_window=settings.email_rate_limit_per_hour)


def generate_unsubscribe_token(user_id: UUID, now: Optional[datetime] = None) -> str:
    """Signed one-click unsubscribe token for `user_id`."""
    issued = now or datetime.utcnow()
    claims = {
        "sub": str(user_id),
        "purpose": UNSUBSCRIBE_PURPOSE,
        "iss": UNSUBSCRIBE_ISSUER,
        "aud": UNSUBSCRIBE_AUDIENCE,
        "iat": issued,
        "exp": issued + timedelta(days=settings.unsubscribe_token_ttl_days),
    }
    return jwt.encode(claims, settings.unsubscribe_secret, algorithm=UNSUBSCRIBE_ALGORITHM)


def verify_unsubscribe_token(token: str) -> Optional[UUID]:
    """Return the user id an unsubscribe token was issued for, or None if invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.unsubscribe_secret,
            algorithms=[UNSUBSCRIBE_ALGORITHM],
            audience=UNSUBSCRIBE_AUDIENCE,
            issuer=UNSUBSCRIBE_ISSUER,
        )
    except JWTError:
        return None

    if payload.get("purpose") != UNSUBSCRIBE_PURPOSE:
        return None
    try:
        return UUID(payload["sub"])
    except (KeyError, ValueError):
        return None


def _resolve_timezone(tz_name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or settings.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"[DIGEST] Invalid timezone {tz_name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def calculate_next_digest_time(
    digest_type: DigestType,
    tz_name: Optional[str],
    now: Optional[datetime] = None,
) -> datetime:
    """Next 08:00 local delivery slot, returned as naive UTC.

    Daily digests go out today at 08:00 if that is still ahead, else tomorrow.
    Weekly digests go out on the coming Monday at 08:00.
    """
    tz = _resolve_timezone(tz_name)
    now_utc = now.replace(tzinfo=timezone.utc) if now and now.tzinfo is None else now
    now_utc = now_utc or datetime.now(timezone.utc)
    local_now = now_utc.astimezone(tz)

    if digest_type == DigestType.DAILY:
        scheduled = local_now.replace(hour=DIGEST_HOUR, minute=0, second=0, microsecond=0)
        if scheduled <= local_now:
            scheduled += timedelta(days=1)
    else:
        days_ahead = (0 - local_now.weekday()) % 7
        scheduled = (local_now + timedelta(days=days_ahead)).replace(
            hour=DIGEST_HOUR, minute=0, second=0, microsecond=0
        )
        if scheduled <= local_now:
            scheduled += timedelta(days=7)

    return scheduled.astimezone(timezone.utc).replace(tzinfo=None)


class EmailNotificationService:
    """Routes notifications to email according to each user's preferences."""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[ResendClient] = None,
        rate_limiter: Optional[EmailRateLimiter] = None,
    ):
        self.db = db
        self.client = client or ResendClient()
        self.rate_limiter = rate_limiter or email_rate_limiter

    async def get_preferences(self, user_id: UUID) -> Optional[NotificationPreference]:
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def log_email(
        self,
        user_id: UUID,
        email_type: str,
        recipient: str,
        subject: str,
        status: EmailStatus,
        resend_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> EmailLog:
        entry = EmailLog(
            user_id=user_id,
            email_type=email_type,
            recipient=recipient,
            subject=subject,
            status=status,
            resend_id=resend_id,
            attempts=1,
            last_error=error,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def queue_for_digest(
        self,
        user_id: UUID,
        notification_id: UUID,
        digest_type: DigestType,
        tz_name: Optional[str],
    ) -> DigestQueue:
        entry = DigestQueue(
            user_id=user_id,
            notification_id=notification_id,
            digest_type=digest_type,
            scheduled_for=calculate_next_digest_time(digest_type, tz_name),
            processed=False,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def dispatch(self, notification: Notification, project_name: str) -> str:
        """Email (or queue) one notification for its recipient.

        Returns one of "skipped", "queued", "rate_limited", "sent", "failed".
        """
        toggle = EMAIL_TOGGLES.get(notification.type)
        if toggle is None:
            return "skipped"

        prefs = await self.get_preferences(notification.user_id)
        if prefs is not None and not getattr(prefs, toggle):
            return "skipped"

        user_result = await self.db.execute(
            select(User).where(User.id == notification.user_id, User.deleted_at.is_(None))
        )
        user = user_result.scalar_one_or_none()
        if not user:
            logger.warning(f"[EMAIL] User {notification.user_id} not found for email notification")
            return "skipped"

        frequency = prefs.email_digest_frequency if prefs else DigestFrequency.IMMEDIATE
        timezone_name = prefs.timezone if prefs else settings.default_timezone
        is_large_expense = notification.type == NotificationType.LARGE_EXPENSE

        if not is_large_expense:
            if frequency == DigestFrequency.NEVER:
                return "skipped"
            if frequency in (DigestFrequency.DAILY, DigestFrequency.WEEKLY):
                await self.queue_for_digest(
                    user.id,
                    notification.id,
                    DigestType(frequency.value),
                    timezone_name,
                )
                return "queued"

        if not self.rate_limiter.can_send(user.id, is_large_expense):
            logger.warning(f"[EMAIL] Rate limit exceeded for user {user.id}")
            return "rate_limited"

        subject, html = render_notification_email(
            notification.type,
            user.first_name,
            project_name,
            notification.project_id,
            notification.message,
            generate_unsubscribe_token(user.id),
        )
        return await self._send_and_log(user, notification.type.value, subject, html)

    async def _send_and_log(self, user: User, email_type: str, subject: str, html: str) -> str:
        try:
            resend_id = await self.client.send(user.email, subject, html)
        except EmailDeliveryError as e:
            logger.error(f"[EMAIL] Failed to send {email_type} email to {user.email}: {e}")
            await self.log_email(
                user.id, email_type, user.email, subject, EmailStatus.FAILED, error=str(e)
            )
            return "failed"

        await self.log_email(
            user.id, email_type, user.email, subject, EmailStatus.SENT, resend_id=resend_id
        )
        return "sent"

    async def send_partner_invitation(
        self,
        inviter: User,
        recipient_email: str,
        project_name: str,
        permission: str,
        token: str,
        expires_at: datetime,
    ) -> bool:
        """Send a partner invitation. Logged against the inviter."""
        subject, html = render_partner_invitation_email(
            inviter.full_name or inviter.email,
            project_name,
            permission,
            token,
            expires_at,
        )
        try:
            resend_id = await self.client.send(recipient_email, subject, html)
        except EmailDeliveryError as e:
            logger.error(f"[EMAIL] Failed to send invitation to {recipient_email}: {e}")
            await self.log_email(
                inviter.id, "partner_invitation", recipient_email, subject,
                EmailStatus.FAILED, error=str(e),
            )
            return False

        await self.log_email(
            inviter.id, "partner_invitation", recipient_email, subject,
            EmailStatus.SENT, resend_id=resend_id,
        )
        return True

    async def send_digest(
        self,
        user: User,
        digest_type: DigestType,
        groups: list[DigestProjectGroup],
    ) -> Optional[str]:
        """Send a digest email.

        Raises DigestDeliveryError so the caller can log the failure outside its
        savepoint and leave the queue rows for the next run.
        """
        subject, html = render_digest_email(
            digest_type,
            user.first_name,
            groups,
            generate_unsubscribe_token(user.id),
        )
        email_type = f"{digest_type.value}_digest"
        try:
            resend_id = await self.client.send(user.email, subject, html)
        except EmailDeliveryError as e:
            raise DigestDeliveryError(user, email_type, subject, str(e)) from e

        await self.log_email(
            user.id, email_type, user.email, subject,
            EmailStatus.SENT, resend_id=resend_id,
        )
        return resend_id
