"""Reports router - PDF cost reports."""

import io
import re
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.category import Category
from app.models.cost import Cost
from app.services.authorization import verify_project_access
from app.services.reports import CostReportGenerator, get_report_generator

router = APIRouter(prefix="/projects", tags=["reports"])


@router.get("/{project_id}/reports/costs.pdf")
async def download_cost_report(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
    generator: CostReportGenerator = Depends(get_report_generator),
):
    """Render the project's costs, totals and category breakdown as a PDF."""
    project = await verify_project_access(db, project_id, current_user.db_user_id)

    cost_result = await db.execute(
        select(Cost)
        .where(Cost.project_id == project_id, Cost.deleted_at.is_(None))
        .order_by(Cost.date.desc())
    )
    costs = cost_result.unique().scalars().all()

    category_result = await db.execute(
        select(Category.display_name, func.count(Cost.id), func.sum(Cost.amount))
        .join(Category, Category.id == Cost.category_id)
        .where(Cost.project_id == project_id, Cost.deleted_at.is_(None))
        .group_by(Category.display_name)
        .order_by(func.sum(Cost.amount).desc())
    )

    report = {
        "project_name": project.name,
        "address": project.address.formatted_address if project.address else None,
        "project_type": project.project_type.value,
        "status": project.status.value,
        "total_budget": project.total_budget,
        "total_spent": sum(c.amount for c in costs),
        "categories": [
            {"display_name": name, "count": count, "total": int(total or 0)}
            for name, count, total in category_result.all()
        ],
        "costs": [
            {
                "date": c.date,
                "description": c.description,
                "category": c.category.display_name if c.category else c.category_id,
                "contact": c.contact.full_name if c.contact else "",
                "amount": c.amount,
            }
            for c in costs
        ],
    }

    pdf_bytes = generator.generate_cost_report(report)
    safe_name = re.sub(r"[^A-Za-z0-9_-]+", "_", project.name).strip("_") or "project"
    headers = {"Content-Disposition": f'attachment; filename="{safe_name}_costs.pdf"'}
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=headers)
