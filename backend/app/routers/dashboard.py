"""Dashboard router - portfolio totals across accessible projects."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.cost import Cost
from app.models.enums import ProjectStatus
from app.models.notification import Notification
from app.schemas.dashboard import PortfolioSummary
from app.services.authorization import get_accessible_projects

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/portfolio", response_model=PortfolioSummary)
async def get_portfolio_summary(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Project counts by status, budget, spend and unread notifications.

    Covers owned projects and projects shared with the caller.
    """
    projects = await get_accessible_projects(db, current_user.db_user_id)
    project_ids = [p.id for p in projects]

    by_status = {s: 0 for s in ProjectStatus}
    for project in projects:
        by_status[project.status] += 1

    total_spent = 0
    if project_ids:
        spent_result = await db.execute(
            select(func.coalesce(func.sum(Cost.amount), 0)).where(
                Cost.project_id.in_(project_ids),
                Cost.deleted_at.is_(None),
            )
        )
        total_spent = int(spent_result.scalar() or 0)

    unread_result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.db_user_id,
            Notification.read.is_(False),
        )
    )

    return PortfolioSummary(
        total_projects=len(projects),
        planning=by_status[ProjectStatus.PLANNING],
        active=by_status[ProjectStatus.ACTIVE],
        on_hold=by_status[ProjectStatus.ON_HOLD],
        completed=by_status[ProjectStatus.COMPLETED],
        archived=by_status[ProjectStatus.ARCHIVED],
        total_budget=sum(p.total_budget or 0 for p in projects),
        total_spent=total_spent,
        unread_notifications=unread_result.scalar() or 0,
    )
