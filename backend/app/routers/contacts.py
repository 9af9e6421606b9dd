"""Contacts router - vendors, trades and professionals."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.contact import Contact, ProjectContact
from app.models.enums import AccessPermission, CategoryType
from app.schemas.base import SuccessResponse
from app.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from app.services.authorization import (
    get_accessible_project_ids,
    get_visible_contact,
    verify_entity_access,
    verify_project_access,
)
from app.services.categories import get_valid_category

router = APIRouter(prefix="/contacts", tags=["contacts"])


async def _load_contact(db: AsyncSession, contact_id: UUID) -> Contact:
    result = await db.execute(
        select(Contact)
        .where(Contact.id == contact_id)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


async def _link(db: AsyncSession, project_id: UUID, contact_id: UUID) -> None:
    result = await db.execute(
        select(ProjectContact).where(
            ProjectContact.project_id == project_id,
            ProjectContact.contact_id == contact_id,
        )
    )
    link = result.scalar_one_or_none()
    if link:
        link.deleted_at = None
    else:
        db.add(ProjectContact(project_id=project_id, contact_id=contact_id))


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Create a contact, optionally linking it to a project."""
    await get_valid_category(db, data.category_id, CategoryType.CONTACT)
    if data.project_id:
        await verify_project_access(
            db, data.project_id, current_user.db_user_id, AccessPermission.WRITE
        )

    contact = Contact(
        **data.model_dump(exclude={"project_id"}),
        created_by_id=current_user.db_user_id,
    )
    db.add(contact)
    await db.flush()

    if data.project_id:
        await _link(db, data.project_id, contact.id)

    await db.commit()

    return ContactResponse.model_validate(await _load_contact(db, contact.id))


@router.get("", response_model=List[ContactResponse])
async def list_contacts(
    project_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Contacts linked to a project, or all contacts visible to the caller."""
    if project_id:
        await verify_project_access(db, project_id, current_user.db_user_id)
        linked = select(ProjectContact.contact_id).where(
            ProjectContact.project_id == project_id,
            ProjectContact.deleted_at.is_(None),
        )
        condition = Contact.id.in_(linked)
    else:
        project_ids = await get_accessible_project_ids(db, current_user.db_user_id)
        linked = select(ProjectContact.contact_id).where(
            ProjectContact.project_id.in_(project_ids),
            ProjectContact.deleted_at.is_(None),
        )
        condition = or_(
            Contact.created_by_id == current_user.db_user_id,
            Contact.id.in_(linked),
        )

    result = await db.execute(
        select(Contact)
        .where(Contact.deleted_at.is_(None), condition)
        .order_by(Contact.first_name, Contact.last_name)
    )
    return [ContactResponse.model_validate(c) for c in result.unique().scalars().all()]


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    contact = await get_visible_contact(db, contact_id, current_user.db_user_id)
    return ContactResponse.model_validate(contact)


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Partially update a contact."""
    contact = await get_visible_contact(db, contact_id, current_user.db_user_id)

    update_data = data.model_dump(exclude_unset=True)
    if "first_name" in update_data and not update_data["first_name"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="first_name cannot be cleared",
        )
    if "category_id" in update_data:
        if not update_data["category_id"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="category_id cannot be cleared",
            )
        await get_valid_category(db, update_data["category_id"], CategoryType.CONTACT)

    for field, value in update_data.items():
        setattr(contact, field, value)

    await db.commit()

    return ContactResponse.model_validate(await _load_contact(db, contact_id))


@router.delete("/{contact_id}", response_model=SuccessResponse)
async def delete_contact(
    contact_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Soft delete a contact (creator only)."""
    contact = await get_visible_contact(db, contact_id, current_user.db_user_id)
    if contact.created_by_id != current_user.db_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator can delete this contact",
        )

    contact.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)


@router.post("/{contact_id}/projects/{project_id}", response_model=SuccessResponse)
async def link_contact_to_project(
    contact_id: UUID,
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Link a contact to a project (write access)."""
    await verify_project_access(db, project_id, current_user.db_user_id, AccessPermission.WRITE)
    await get_visible_contact(db, contact_id, current_user.db_user_id)

    await _link(db, project_id, contact_id)
    await db.commit()

    return SuccessResponse(success=True)


@router.delete("/{contact_id}/projects/{project_id}", response_model=SuccessResponse)
async def unlink_contact_from_project(
    contact_id: UUID,
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Remove a contact from a project (write access)."""
    await verify_project_access(db, project_id, current_user.db_user_id, AccessPermission.WRITE)

    result = await db.execute(
        select(ProjectContact).where(
            ProjectContact.project_id == project_id,
            ProjectContact.contact_id == contact_id,
            ProjectContact.deleted_at.is_(None),
        )
    )
    link = verify_entity_access(result.scalar_one_or_none(), "Project contact")

    link.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)
