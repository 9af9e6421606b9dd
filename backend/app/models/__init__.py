"""SQLAlchemy models for the Real Estate Portfolio API."""

from app.models.user import User
from app.models.project import Address, Project, ProjectAccess
from app.models.category import Category
from app.models.contact import Contact, ProjectContact
from app.models.cost import Cost
from app.models.document import Document, CostDocument, ContactDocument, EventDocument
from app.models.event import Event
from app.models.phase import Phase
from app.models.notification import Notification, NotificationPreference
from app.models.email import EmailLog, DigestQueue
from app.models.vendor_rating import VendorRating
from app.models.comment import Comment
from app.models.audit import AuditLog, SecurityEvent

__all__ = [
    "User",
    "Address",
    "Project",
    "ProjectAccess",
    "Category",
    "Contact",
    "ProjectContact",
    "Cost",
    "Document",
    "CostDocument",
    "ContactDocument",
    "EventDocument",
    "Event",
    "Phase",
    "Notification",
    "NotificationPreference",
    "EmailLog",
    "DigestQueue",
    "VendorRating",
    "Comment",
    "AuditLog",
    "SecurityEvent",
]
