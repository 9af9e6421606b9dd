"""Vendor spend and rating metrics.

All figures are computed over non-deleted costs in projects the caller can
access, so two users may see different numbers for the same vendor.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.contact import Contact
from app.models.cost import Cost
from app.models.vendor_rating import VendorRating
from app.schemas.vendor import CategorySpend, VendorMetrics

DAYS_PER_YEAR = 365
TOP_CATEGORY_COUNT = 3


def average_cost(total_spent: int, cost_count: int) -> int:
    if cost_count <= 0:
        return 0
    return round(total_spent / cost_count)


def project_frequency(
    total_projects: int,
    first_cost_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> float:
    """Projects per year of activity, with at least one year assumed."""
    if not first_cost_date or total_projects <= 0:
        return 0.0
    years_active = ((now or datetime.utcnow()) - first_cost_date).days / DAYS_PER_YEAR
    return round(total_projects / max(years_active, 1), 2)


def round_rating(average: Optional[float]) -> Optional[float]:
    if average is None:
        return None
    return round(float(average), 1)


class VendorMetricsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_vendor(self, contact_id: UUID, project_ids: list[UUID]) -> Contact:
        """Contact with at least one cost in an accessible project, else 404."""
        if project_ids:
            result = await self.db.execute(
                select(Contact).where(
                    Contact.id == contact_id,
                    Contact.deleted_at.is_(None),
                    Contact.id.in_(
                        select(Cost.contact_id).where(
                            Cost.project_id.in_(project_ids),
                            Cost.deleted_at.is_(None),
                        )
                    ),
                )
            )
            contact = result.unique().scalar_one_or_none()
            if contact:
                return contact
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vendor not found",
        )

    async def compute(self, contact: Contact, project_ids: list[UUID]) -> VendorMetrics:
        cost_filter = (
            Cost.contact_id == contact.id,
            Cost.project_id.in_(project_ids),
            Cost.deleted_at.is_(None),
        )

        totals = await self.db.execute(
            select(
                func.count(func.distinct(Cost.project_id)),
                func.coalesce(func.sum(Cost.amount), 0),
                func.count(Cost.id),
                func.min(Cost.date),
                func.max(Cost.date),
            ).where(*cost_filter)
        )
        total_projects, total_spent, cost_count, first_used, last_used = totals.one()

        categories = await self.db.execute(
            select(Cost.category_id, Category.display_name, func.sum(Cost.amount).label("total"))
            .join(Category, Category.id == Cost.category_id)
            .where(*cost_filter)
            .group_by(Cost.category_id, Category.display_name)
            .order_by(func.sum(Cost.amount).desc())
            .limit(TOP_CATEGORY_COUNT)
        )

        ratings = await self.db.execute(
            select(func.avg(VendorRating.rating), func.count(VendorRating.id)).where(
                VendorRating.contact_id == contact.id,
                VendorRating.project_id.in_(project_ids),
                VendorRating.deleted_at.is_(None),
            )
        )
        rating_avg, rating_count = ratings.one()

        return VendorMetrics(
            contact_id=contact.id,
            name=contact.full_name,
            company=contact.company,
            total_projects=total_projects or 0,
            total_spent=int(total_spent or 0),
            average_cost=average_cost(int(total_spent or 0), cost_count or 0),
            frequency=project_frequency(total_projects or 0, first_used),
            last_used=last_used,
            top_categories=[
                CategorySpend(category_id=cid, display_name=name, total=int(total))
                for cid, name, total in categories.all()
            ],
            average_rating=round_rating(rating_avg),
            rating_count=rating_count or 0,
        )
