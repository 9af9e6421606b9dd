"""Vendors router - ratings and spend metrics for contacts used on projects."""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.cost import Cost
from app.models.vendor_rating import VendorRating
from app.schemas.base import SuccessResponse
from app.schemas.vendor import (
    VendorCompareRequest,
    VendorMetrics,
    VendorRatingCreate,
    VendorRatingResponse,
    VendorRatingUpdate,
)
from app.services.authorization import (
    get_accessible_project_ids,
    verify_entity_access,
    verify_project_access,
)
from app.services.vendor_metrics import VendorMetricsService

router = APIRouter(prefix="/vendors", tags=["vendors"])


async def _get_own_rating(db: AsyncSession, rating_id: UUID, user_id: UUID) -> VendorRating:
    result = await db.execute(
        select(VendorRating).where(
            VendorRating.id == rating_id,
            VendorRating.deleted_at.is_(None),
        )
    )
    rating = verify_entity_access(result.scalar_one_or_none(), "Rating")
    if rating.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own ratings",
        )
    return rating


@router.post("/ratings", response_model=VendorRatingResponse, status_code=status.HTTP_201_CREATED)
async def rate_vendor(
    data: VendorRatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Rate a vendor that has costs on the project."""
    user_id = current_user.db_user_id
    await verify_project_access(db, data.project_id, user_id)

    used = await db.execute(
        select(Cost.id).where(
            Cost.contact_id == data.contact_id,
            Cost.project_id == data.project_id,
            Cost.deleted_at.is_(None),
        ).limit(1)
    )
    if used.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vendor is not associated with this project",
        )

    existing_result = await db.execute(
        select(VendorRating).where(
            VendorRating.user_id == user_id,
            VendorRating.contact_id == data.contact_id,
            VendorRating.project_id == data.project_id,
        )
    )
    rating = existing_result.scalar_one_or_none()
    if rating and rating.deleted_at is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already rated this vendor for this project",
        )

    if rating:
        # Soft-deleted rows still hold the unique key
        rating.rating = data.rating
        rating.review = data.review
        rating.deleted_at = None
    else:
        rating = VendorRating(
            user_id=user_id,
            contact_id=data.contact_id,
            project_id=data.project_id,
            rating=data.rating,
            review=data.review,
        )
        db.add(rating)

    await db.commit()
    await db.refresh(rating)

    return VendorRatingResponse.model_validate(rating)


@router.patch("/ratings/{rating_id}", response_model=VendorRatingResponse)
async def update_rating(
    rating_id: UUID,
    data: VendorRatingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    rating = await _get_own_rating(db, rating_id, current_user.db_user_id)

    update_data = data.model_dump(exclude_unset=True)
    if "rating" in update_data and update_data["rating"] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="rating cannot be cleared",
        )
    for field, value in update_data.items():
        setattr(rating, field, value)

    await db.commit()
    await db.refresh(rating)

    return VendorRatingResponse.model_validate(rating)


@router.delete("/ratings/{rating_id}", response_model=SuccessResponse)
async def delete_rating(
    rating_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    rating = await _get_own_rating(db, rating_id, current_user.db_user_id)
    rating.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)


@router.post("/compare", response_model=List[VendorMetrics])
async def compare_vendors(
    data: VendorCompareRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Metrics for up to five vendors; inaccessible vendors are left out."""
    project_ids = await get_accessible_project_ids(db, current_user.db_user_id)
    service = VendorMetricsService(db)

    metrics = []
    for contact_id in dict.fromkeys(data.contact_ids):
        try:
            contact = await service.get_vendor(contact_id, project_ids)
        except HTTPException:
            continue
        metrics.append(await service.compute(contact, project_ids))
    return metrics


@router.get("/{contact_id}/ratings", response_model=List[VendorRatingResponse])
async def list_vendor_ratings(
    contact_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Ratings for a vendor within the caller's projects, newest first."""
    project_ids = await get_accessible_project_ids(db, current_user.db_user_id)
    if not project_ids:
        return []

    result = await db.execute(
        select(VendorRating)
        .where(
            VendorRating.contact_id == contact_id,
            VendorRating.project_id.in_(project_ids),
            VendorRating.deleted_at.is_(None),
        )
        .order_by(VendorRating.created_at.desc())
    )
    return [VendorRatingResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{contact_id}/metrics", response_model=VendorMetrics)
async def get_vendor_metrics(
    contact_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    project_ids = await get_accessible_project_ids(db, current_user.db_user_id)
    service = VendorMetricsService(db)
    contact = await service.get_vendor(contact_id, project_ids)
    return await service.compute(contact, project_ids)
