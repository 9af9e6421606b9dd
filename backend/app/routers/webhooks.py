"""Webhooks router - email delivery tracking from Resend."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.email import EmailLog
from app.models.enums import DigestFrequency, EmailStatus
from app.models.notification import NotificationPreference
from app.schemas.webhook import ResendWebhookEvent, WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

EVENT_STATUS = {
    "email.sent": EmailStatus.SENT,
    "email.delivered": EmailStatus.DELIVERED,
    "email.bounced": EmailStatus.BOUNCED,
    "email.failed": EmailStatus.FAILED,
    "email.complained": EmailStatus.COMPLAINED,
}


def should_unsubscribe(event: ResendWebhookEvent) -> bool:
    """Hard bounces and spam complaints stop all further digest email."""
    if event.type == "email.complained":
        return True
    return event.type == "email.bounced" and event.data.bounce_type == "hard"


@router.post("/resend", response_model=WebhookAck)
async def resend_webhook(
    event: ResendWebhookEvent,
    db: AsyncSession = Depends(get_db),
):
    """Apply a delivery event to the matching email log row."""
    resend_id = event.data.email_id
    logger.info(f"[WEBHOOK] Received {event.type} for {resend_id}")

    if not resend_id:
        return WebhookAck(message="No email_id to process")

    result = await db.execute(select(EmailLog).where(EmailLog.resend_id == resend_id))
    email_log = result.scalars().first()
    if not email_log:
        logger.warning(f"[WEBHOOK] Email log not found for resend id {resend_id}")
        return WebhookAck(message="Email log not found", email_id=resend_id)

    new_status = EVENT_STATUS.get(event.type)
    if new_status:
        email_log.status = new_status
        if new_status == EmailStatus.DELIVERED:
            email_log.delivered_at = datetime.utcnow()
        error = event.data.error or event.data.message
        if error:
            email_log.last_error = error

    if should_unsubscribe(event):
        await db.execute(
            update(NotificationPreference)
            .where(NotificationPreference.user_id == email_log.user_id)
            .values(email_digest_frequency=DigestFrequency.NEVER)
        )
        logger.info(f"[WEBHOOK] Auto-unsubscribed user {email_log.user_id} after {event.type}")

    await db.commit()

    return WebhookAck(message=f"Processed {event.type} event", email_id=resend_id)
