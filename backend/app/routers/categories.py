"""Categories router."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.category import Category
from app.models.enums import CategoryType
from app.schemas.base import SuccessResponse
from app.schemas.category import CategoryCreate, CategoryResponse
from app.services.categories import custom_category_id, list_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[CategoryResponse])
async def get_categories(
    type: Optional[CategoryType] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Predefined plus the caller's custom categories, optionally of one type."""
    categories = await list_categories(db, type, current_user.db_user_id)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_custom_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Create a custom category. A parent must exist and share the type."""
    if data.parent_id:
        parent_result = await db.execute(
            select(Category).where(Category.id == data.parent_id, Category.type == data.type)
        )
        if not parent_result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent category not found for this type",
            )

    category = Category(
        id=custom_category_id(data.display_name),
        type=data.type,
        display_name=data.display_name,
        parent_id=data.parent_id,
        is_custom=True,
        is_archived=False,
        created_by_id=current_user.db_user_id,
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)

    return CategoryResponse.model_validate(category)


@router.post("/{category_id}/archive", response_model=SuccessResponse)
async def archive_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Archive one of the caller's custom categories."""
    result = await db.execute(select(Category).where(Category.id == category_id))
    category = result.scalar_one_or_none()

    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    if not category.is_custom or category.created_by_id != current_user.db_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only custom categories you created can be archived",
        )

    category.is_archived = True
    await db.commit()

    return SuccessResponse(success=True)
