"""Category lookups shared by the cost, contact, document and event routers."""

import re
import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.enums import CategoryType


async def get_valid_category(
    db: AsyncSession,
    category_id: str,
    category_type: CategoryType,
) -> Category:
    """Return a non-archived category of the given type, else 400 "Invalid <type> category"."""
    result = await db.execute(
        select(Category).where(
            Category.id == category_id,
            Category.type == category_type,
            Category.is_archived.is_(False),
        )
    )
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {category_type.value} category",
        )
    return category


async def list_categories(
    db: AsyncSession,
    category_type: Optional[CategoryType],
    user_id: uuid.UUID,
) -> list[Category]:
    """Predefined categories plus the caller's non-archived custom ones."""
    query = select(Category).where(
        Category.is_archived.is_(False),
        or_(Category.is_custom.is_(False), Category.created_by_id == user_id),
    )
    if category_type:
        query = query.where(Category.type == category_type)
    result = await db.execute(query.order_by(Category.is_custom, Category.display_name))
    return list(result.scalars().all())


def custom_category_id(display_name: str) -> str:
    """Slug-style id for a custom category, unique by random suffix."""
    slug = re.sub(r"[^a-z0-9]+", "_", display_name.lower()).strip("_")[:60] or "category"
    return f"custom_{slug}_{uuid.uuid4().hex[:8]}"
