"""API Routers for the Real Estate Portfolio service."""

from app.routers.auth import router as auth_router
from app.routers.projects import router as projects_router
from app.routers.costs import router as costs_router
from app.routers.categories import router as categories_router
from app.routers.contacts import router as contacts_router
from app.routers.documents import router as documents_router
from app.routers.events import router as events_router
from app.routers.phases import router as phases_router
from app.routers.search import router as search_router
from app.routers.notifications import router as notifications_router
from app.routers.notification_preferences import router as notification_preferences_router
from app.routers.partners import router as partners_router
from app.routers.vendors import router as vendors_router
from app.routers.comments import router as comments_router
from app.routers.security import router as security_router
from app.routers.reports import router as reports_router
from app.routers.dashboard import router as dashboard_router
from app.routers.cron import router as cron_router
from app.routers.webhooks import router as webhooks_router

__all__ = [
    "auth_router",
    "projects_router",
    "costs_router",
    "categories_router",
    "contacts_router",
    "documents_router",
    "events_router",
    "phases_router",
    "search_router",
    "notifications_router",
    "notification_preferences_router",
    "partners_router",
    "vendors_router",
    "comments_router",
    "security_router",
    "reports_router",
    "dashboard_router",
    "cron_router",
    "webhooks_router",
]
