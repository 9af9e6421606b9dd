"""Email provider webhook payloads."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ResendEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email_id: Optional[str] = None
    to: Optional[list[str] | str] = None
    bounce_type: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ResendWebhookEvent(BaseModel):
    """Delivery event posted by Resend."""

    model_config = ConfigDict(extra="ignore")

    type: str
    created_at: Optional[str] = None
    data: ResendEventData = ResendEventData()


class WebhookAck(BaseModel):
    success: bool = True
    message: str
    email_id: Optional[str] = None
