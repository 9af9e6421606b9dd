"""HTML email templates for project activity and digests."""

from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Optional
from uuid import UUID

from app.core.config import get_settings
from app.models.enums import DigestType, NotificationType

settings = get_settings()

BRAND = "Real Estate Portfolio"

SUBJECTS = {
    NotificationType.COST_ADDED: "New Cost Added to {project} - " + BRAND,
    NotificationType.LARGE_EXPENSE: "🚨 Large Expense Alert: {project} - " + BRAND,
    NotificationType.DOCUMENT_UPLOADED: "New Document Uploaded to {project} - " + BRAND,
    NotificationType.TIMELINE_EVENT: "New Timeline Event: {project} - " + BRAND,
    NotificationType.COMMENT_ADDED: "New Comment on {project} - " + BRAND,
}

HEADINGS = {
    NotificationType.COST_ADDED: "New cost added",
    NotificationType.LARGE_EXPENSE: "Large expense alert",
    NotificationType.DOCUMENT_UPLOADED: "New document uploaded",
    NotificationType.TIMELINE_EVENT: "New timeline event",
    NotificationType.COMMENT_ADDED: "New comment",
}

# Project sub-page each notification links to
ENTITY_PATHS = {
    NotificationType.COST_ADDED: "costs",
    NotificationType.LARGE_EXPENSE: "costs",
    NotificationType.DOCUMENT_UPLOADED: "documents",
    NotificationType.TIMELINE_EVENT: "timeline",
    NotificationType.COMMENT_ADDED: "",
}


def format_currency(amount_cents: int) -> str:
    """Format integer cents as dollars, e.g. 123456 -> "$1,234.56"."""
    sign = "-" if amount_cents < 0 else ""
    return f"{sign}${abs(amount_cents) / 100:,.2f}"


def format_date(value: datetime) -> str:
    return value.strftime("%d %b %Y")


def unsubscribe_url(token: str) -> str:
    return f"{settings.app_url}/unsubscribe/{token}"


def project_url(project_id: UUID, path: str = "") -> str:
    url = f"{settings.app_url}/projects/{project_id}"
    return f"{url}/{path}" if path else url


def wrap_email(title: str, content: str, unsubscribe_link: Optional[str]) -> str:
    """Common layout shared by every outbound email."""
    footer = (
        f'<p><a href="{escape(unsubscribe_link)}">Unsubscribe</a> from these emails '
        f"or manage your notification settings.</p>"
        if unsubscribe_link
        else ""
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{escape(title)}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; background-color: #f9fafb; margin: 0; padding: 0;">
<div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px;">
<div style="background: #667eea; color: #ffffff; padding: 32px 24px; text-align: center;">
<h1 style="margin: 0; font-size: 24px;">{escape(title)}</h1>
</div>
<div style="padding: 32px 24px;">
{content}
</div>
<div style="background: #f3f4f6; padding: 24px; text-align: center; font-size: 12px; color: #6b7280;">
<p>{BRAND}</p>
{footer}
</div>
</div>
</body>
</html>"""


def _button(href: str, label: str) -> str:
    return (
        f'<a href="{escape(href)}" style="display: inline-block; background: #3b82f6; '
        f'color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 6px; '
        f'font-weight: 600; margin: 24px 0;">{escape(label)}</a>'
    )


def render_notification_email(
    notification_type: NotificationType,
    recipient_name: str,
    project_name: str,
    project_id: UUID,
    message: str,
    unsubscribe_token: Optional[str],
) -> tuple[str, str]:
    """Render a single-notification email.

    Returns:
        Tuple of (subject, html)
    """
    subject = SUBJECTS[notification_type].format(project=project_name)
    heading = HEADINGS[notification_type]
    link = project_url(project_id, ENTITY_PATHS[notification_type])

    content = (
        f"<p>Hi {escape(recipient_name or 'there')},</p>"
        f"<p>{escape(message)}</p>"
        f"{_button(link, 'View in ' + BRAND)}"
    )
    html = wrap_email(
        heading,
        content,
        unsubscribe_url(unsubscribe_token) if unsubscribe_token else None,
    )
    return subject, html


def render_partner_invitation_email(
    inviter_name: str,
    project_name: str,
    permission: str,
    token: str,
    expires_at: datetime,
) -> tuple[str, str]:
    subject = f"{inviter_name} invited you to {project_name} - {BRAND}"
    accept_link = f"{settings.app_url}/invite/{token}"
    content = (
        f"<p>{escape(inviter_name)} has invited you to collaborate on "
        f"<strong>{escape(project_name)}</strong> with <strong>{escape(permission)}</strong> access.</p>"
        f"{_button(accept_link, 'Accept invitation')}"
        f"<p>This invitation expires on {format_date(expires_at)}.</p>"
    )
    return subject, wrap_email("You're invited", content, None)


@dataclass
class DigestItem:
    message: str
    created_at: datetime


@dataclass
class DigestProjectGroup:
    project_id: Optional[UUID]
    project_name: str
    items: list[DigestItem] = field(default_factory=list)


def render_digest_email(
    digest_type: DigestType,
    recipient_name: str,
    groups: list[DigestProjectGroup],
    unsubscribe_token: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """Render a daily/weekly digest grouped by project."""
    now = now or datetime.utcnow()
    label = "Daily" if digest_type == DigestType.DAILY else "Weekly"
    subject = f"Your {label} Project Digest - {BRAND}"

    total = sum(len(g.items) for g in groups)
    sections = []
    for group in groups:
        rows = "".join(
            f"<li>{escape(item.message)} <span style=\"color: #6b7280;\">"
            f"({format_date(item.created_at)})</span></li>"
            for item in group.items
        )
        title = escape(group.project_name)
        if group.project_id:
            title = f'<a href="{escape(project_url(group.project_id))}">{title}</a>'
        sections.append(f"<h3>{title}</h3><ul>{rows}</ul>")

    content = (
        f"<p>Hi {escape(recipient_name or 'there')},</p>"
        f"<p>You have {total} update{'s' if total != 1 else ''} as of {format_date(now)}.</p>"
        + "".join(sections)
    )
    html = wrap_email(
        f"{label} digest",
        content,
        unsubscribe_url(unsubscribe_token) if unsubscribe_token else None,
    )
    return subject, html
