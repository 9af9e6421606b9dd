"""Costs router. All amounts are integer cents."""

from datetime import datetime
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.category import Category
from app.models.contact import Contact
from app.models.cost import Cost
from app.models.document import CostDocument, Document
from app.models.enums import AccessPermission, CategoryType
from app.schemas.base import SuccessResponse
from app.schemas.cost import (
    CostCreate,
    CostDocumentLink,
    CostFilters,
    CostResponse,
    CostSortField,
    CostTotalResponse,
    CostUpdate,
    SortDirection,
)
from app.services.audit import AuditService
from app.services.authorization import verify_entity_access, verify_project_access
from app.services.categories import get_valid_category
from app.services.notifications import NotificationService, notify_safely

router = APIRouter(prefix="/costs", tags=["costs"])


def apply_cost_filters(query, filters: CostFilters):
    """Narrow a Cost query by the shared list/total filters."""
    if filters.category_id:
        query = query.where(Cost.category_id == filters.category_id)
    if filters.start_date:
        query = query.where(Cost.date >= filters.start_date)
    if filters.end_date:
        query = query.where(Cost.date <= filters.end_date)
    if filters.search_text:
        query = query.where(Cost.description.ilike(f"%{filters.search_text}%"))
    if filters.min_amount is not None:
        query = query.where(Cost.amount >= filters.min_amount)
    if filters.max_amount is not None:
        query = query.where(Cost.amount <= filters.max_amount)
    if filters.contact_id:
        query = query.where(Cost.contact_id == filters.contact_id)
    if filters.contact_name_search:
        pattern = f"%{filters.contact_name_search}%"
        query = query.where(
            Cost.contact_id.in_(
                select(Contact.id).where(
                    or_(
                        Contact.first_name.ilike(pattern),
                        Contact.last_name.ilike(pattern),
                        Contact.company.ilike(pattern),
                    )
                )
            )
        )
    return query


def cost_sort_clause(sort_by: CostSortField, direction: SortDirection):
    column = {
        CostSortField.DATE: Cost.date,
        CostSortField.AMOUNT: Cost.amount,
        CostSortField.CONTACT: Contact.first_name,
        CostSortField.CATEGORY: Category.display_name,
    }[sort_by]
    if direction == SortDirection.ASC:
        return column.asc().nulls_last()
    return column.desc().nulls_last()


async def _load_cost(db: AsyncSession, cost_id: UUID) -> Cost:
    result = await db.execute(
        select(Cost)
        .where(Cost.id == cost_id)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


async def _get_cost(db: AsyncSession, cost_id: UUID) -> Cost:
    result = await db.execute(
        select(Cost).where(Cost.id == cost_id, Cost.deleted_at.is_(None))
    )
    return verify_entity_access(result.unique().scalar_one_or_none(), "Cost")


async def _validate_contact(db: AsyncSession, contact_id: UUID) -> None:
    result = await db.execute(
        select(Contact.id).where(Contact.id == contact_id, Contact.deleted_at.is_(None))
    )
    verify_entity_access(result.scalar_one_or_none(), "Contact")


@router.post("", response_model=CostResponse, status_code=status.HTTP_201_CREATED)
async def create_cost(
    data: CostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Record a cost against a project (write access)."""
    project = await verify_project_access(
        db, data.project_id, current_user.db_user_id, AccessPermission.WRITE
    )
    await get_valid_category(db, data.category_id, CategoryType.COST)
    if data.contact_id:
        await _validate_contact(db, data.contact_id)

    cost = Cost(
        project_id=data.project_id,
        amount=data.amount,
        description=data.description,
        category_id=data.category_id,
        date=data.date,
        contact_id=data.contact_id,
        created_by_id=current_user.db_user_id,
    )
    db.add(cost)
    await db.commit()

    await notify_safely(
        db,
        NotificationService(db).notify_cost_added(project, cost, current_user.db_user_id),
        "cost_added",
    )

    return CostResponse.model_validate(await _load_cost(db, cost.id))


@router.get("", response_model=List[CostResponse])
async def list_costs(
    project_id: UUID,
    filters: Annotated[CostFilters, Query()],
    sort_by: CostSortField = CostSortField.DATE,
    sort_direction: SortDirection = SortDirection.DESC,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """List a project's non-deleted costs with filters and sorting."""
    await verify_project_access(db, project_id, current_user.db_user_id)

    query = (
        select(Cost)
        .outerjoin(Contact, Cost.contact_id == Contact.id)
        .join(Category, Cost.category_id == Category.id)
        .where(Cost.project_id == project_id, Cost.deleted_at.is_(None))
    )
    query = apply_cost_filters(query, filters)
    query = query.order_by(cost_sort_clause(sort_by, sort_direction), Cost.created_at.desc())

    result = await db.execute(query)
    return [CostResponse.model_validate(c) for c in result.unique().scalars().all()]


@router.get("/total", response_model=CostTotalResponse)
async def get_cost_total(
    project_id: UUID,
    filters: Annotated[CostFilters, Query()],
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Sum of non-deleted costs matching the filters."""
    await verify_project_access(db, project_id, current_user.db_user_id)

    query = select(func.coalesce(func.sum(Cost.amount), 0)).where(
        Cost.project_id == project_id,
        Cost.deleted_at.is_(None),
    )
    query = apply_cost_filters(query, filters)

    result = await db.execute(query)
    return CostTotalResponse(total=int(result.scalar() or 0))


@router.get("/{cost_id}", response_model=CostResponse)
async def get_cost(
    cost_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Get a cost via read access to its project."""
    cost = await _get_cost(db, cost_id)
    await verify_project_access(db, cost.project_id, current_user.db_user_id)

    return CostResponse.model_validate(cost)


@router.patch("/{cost_id}", response_model=CostResponse)
async def update_cost(
    cost_id: UUID,
    data: CostUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Partially update a cost (write access)."""
    cost = await _get_cost(db, cost_id)
    await verify_project_access(
        db, cost.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("category_id"):
        await get_valid_category(db, update_data["category_id"], CategoryType.COST)
    if update_data.get("contact_id"):
        await _validate_contact(db, update_data["contact_id"])
    for field in ("amount", "description", "category_id", "date"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be cleared",
            )

    for field, value in update_data.items():
        setattr(cost, field, value)

    await db.commit()

    return CostResponse.model_validate(await _load_cost(db, cost_id))


@router.delete("/{cost_id}", response_model=SuccessResponse)
async def delete_cost(
    cost_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Soft delete a cost (write access)."""
    cost = await _get_cost(db, cost_id)
    await verify_project_access(
        db, cost.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    cost.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)


@router.post("/{cost_id}/documents", response_model=SuccessResponse)
async def link_cost_documents(
    cost_id: UUID,
    data: CostDocumentLink,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Attach documents from the same project to a cost."""
    cost = await _get_cost(db, cost_id)
    await verify_project_access(
        db, cost.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    doc_result = await db.execute(
        select(Document.id).where(
            Document.id.in_(data.document_ids),
            Document.project_id == cost.project_id,
            Document.deleted_at.is_(None),
        )
    )
    valid_ids = set(doc_result.scalars().all())
    missing = [d for d in data.document_ids if d not in valid_ids]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Documents must belong to the same project",
        )

    existing_result = await db.execute(
        select(CostDocument.document_id).where(
            CostDocument.cost_id == cost_id,
            CostDocument.document_id.in_(data.document_ids),
        )
    )
    already_linked = set(existing_result.scalars().all())

    new_ids = [d for d in dict.fromkeys(data.document_ids) if d not in already_linked]
    for document_id in new_ids:
        db.add(CostDocument(cost_id=cost_id, document_id=document_id))

    if new_ids:
        audit = AuditService(db)
        await audit.log_documents_linked(
            entity_type="cost",
            entity_id=cost_id,
            project_id=cost.project_id,
            user_id=current_user.db_user_id,
            document_ids=new_ids,
        )

    await db.commit()

    return SuccessResponse(success=True)


@router.delete("/{cost_id}/documents/{document_id}", response_model=SuccessResponse)
async def unlink_cost_document(
    cost_id: UUID,
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Detach a document from a cost."""
    cost = await _get_cost(db, cost_id)
    await verify_project_access(
        db, cost.project_id, current_user.db_user_id, AccessPermission.WRITE
    )

    result = await db.execute(
        select(CostDocument).where(
            CostDocument.cost_id == cost_id,
            CostDocument.document_id == document_id,
        )
    )
    link = verify_entity_access(result.scalar_one_or_none(), "Document link")

    await db.delete(link)
    await db.commit()

    return SuccessResponse(success=True)
