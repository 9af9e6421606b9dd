"""Services for the Real Estate Portfolio API."""

from app.services.storage import StorageService, get_storage_service
from app.services.audit import AuditService
from app.services.email import EmailNotificationService, ResendClient, email_rate_limiter
from app.services.notifications import NotificationService
from app.services.digest import DigestService
from app.services.search import SearchService
from app.services.vendor_metrics import VendorMetricsService
from app.services.reports import CostReportGenerator, get_report_generator

__all__ = [
    "StorageService",
    "get_storage_service",
    "AuditService",
    "EmailNotificationService",
    "ResendClient",
    "email_rate_limiter",
    "NotificationService",
    "DigestService",
    "SearchService",
    "VendorMetricsService",
    "CostReportGenerator",
    "get_report_generator",
]
