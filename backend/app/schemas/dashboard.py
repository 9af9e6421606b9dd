"""Portfolio dashboard schemas."""

from app.schemas.base import BaseSchema


class PortfolioSummary(BaseSchema):
    """Aggregate figures across every project the user can access."""

    total_projects: int
    planning: int
    active: int
    on_hold: int
    completed: int
    archived: int
    total_budget: int
    total_spent: int
    unread_notifications: int
