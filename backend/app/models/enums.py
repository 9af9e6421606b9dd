"""Enumeration types for the Real Estate Portfolio domain model."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum


class ProjectType(str, Enum):
    """Type of construction project."""
    RENOVATION = "renovation"
    NEW_BUILD = "new_build"
    DEVELOPMENT = "development"
    MAINTENANCE = "maintenance"


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class AustralianState(str, Enum):
    """Australian states and territories."""
    NSW = "NSW"
    VIC = "VIC"
    QLD = "QLD"
    WA = "WA"
    SA = "SA"
    TAS = "TAS"
    ACT = "ACT"
    NT = "NT"


class AccessPermission(str, Enum):
    """Partner permission on a project."""
    READ = "read"
    WRITE = "write"


class AccessLevel(str, Enum):
    """Effective access level of a user on a project."""
    NONE = "none"
    READ = "read"
    WRITE = "write"


class CategoryType(str, Enum):
    """Which entity type a category applies to."""
    CONTACT = "contact"
    COST = "cost"
    DOCUMENT = "document"
    EVENT = "event"


class PhaseStatus(str, Enum):
    """Status of a construction phase."""
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    DELAYED = "delayed"


class PhaseTemplateType(str, Enum):
    """Available phase templates."""
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    RENOVATION = "renovation"


class NotificationType(str, Enum):
    """Kinds of in-app notification."""
    COST_ADDED = "cost_added"
    LARGE_EXPENSE = "large_expense"
    DOCUMENT_UPLOADED = "document_uploaded"
    TIMELINE_EVENT = "timeline_event"
    PARTNER_INVITED = "partner_invited"
    COMMENT_ADDED = "comment_added"


class NotificationEntityType(str, Enum):
    """Entity a notification points at."""
    COST = "cost"
    DOCUMENT = "document"
    EVENT = "event"
    PROJECT = "project"


class DigestFrequency(str, Enum):
    """Email delivery cadence."""
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


class DigestType(str, Enum):
    """Queued digest cadence."""
    DAILY = "daily"
    WEEKLY = "weekly"


class EmailStatus(str, Enum):
    """Delivery status of an outbound email."""
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    BOUNCED = "bounced"
    COMPLAINED = "complained"


class CommentEntityType(str, Enum):
    """Entities that accept comments."""
    COST = "cost"
    DOCUMENT = "document"
    EVENT = "event"


class SecurityEventType(str, Enum):
    """Two-factor authentication security events."""
    TWO_FA_ENABLED = "2fa_enabled"
    TWO_FA_DISABLED = "2fa_disabled"
    TWO_FA_LOGIN_SUCCESS = "2fa_login_success"
    TWO_FA_LOGIN_FAILURE = "2fa_login_failure"
    BACKUP_CODE_GENERATED = "backup_code_generated"
    BACKUP_CODE_USED = "backup_code_used"
    BACKUP_DOWNLOADED = "backup_downloaded"


class SearchEntityType(str, Enum):
    """Entities covered by global search."""
    PROJECT = "project"
    COST = "cost"
    CONTACT = "contact"
    DOCUMENT = "document"


class AuditAction(str, Enum):
    """Actions tracked in audit log."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UPLOADED = "uploaded"
    LINKED = "linked"
    INVITED = "invited"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


def db_enum(enum_cls: type[Enum], name: str) -> SQLEnum:
    """Postgres ENUM column type persisted by member value rather than name."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )
