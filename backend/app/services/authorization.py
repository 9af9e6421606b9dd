"""Project permission gating.

Every read or write on project data goes through these helpers. A user can
see a project if they own it or hold a non-revoked, accepted partner grant;
writing requires ownership or a `write` grant.
"""

from typing import Any, Iterable, Optional, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact, ProjectContact
from app.models.enums import AccessLevel, AccessPermission
from app.models.project import Project, ProjectAccess

T = TypeVar("T")


def accepted_grants_subquery(user_id: UUID):
    """Project ids on which `user_id` holds an accepted, non-revoked grant."""
    return select(ProjectAccess.project_id).where(
        ProjectAccess.user_id == user_id,
        ProjectAccess.accepted_at.is_not(None),
        ProjectAccess.deleted_at.is_(None),
    )


async def verify_project_ownership(db: AsyncSession, project_id: UUID, user_id: UUID) -> Project:
    """Return the project if `user_id` owns it, else 403."""
    result = await db.execute(
        select(Project).where(
            Project.id == project_id,
            Project.owner_id == user_id,
            Project.deleted_at.is_(None),
        )
    )
    project = result.scalar_one_or_none()

    if not project:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Project not found or you do not have ownership access",
        )
    return project


async def get_project_permission_level(
    db: AsyncSession,
    project_id: UUID,
    user_id: UUID,
) -> tuple[Optional[Project], AccessLevel]:
    """Resolve the caller's effective access on a project."""
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.deleted_at.is_(None))
    )
    project = result.scalar_one_or_none()
    if not project:
        return None, AccessLevel.NONE

    if project.owner_id == user_id:
        return project, AccessLevel.WRITE

    grant_result = await db.execute(
        select(ProjectAccess.permission).where(
            ProjectAccess.project_id == project_id,
            ProjectAccess.user_id == user_id,
            ProjectAccess.accepted_at.is_not(None),
            ProjectAccess.deleted_at.is_(None),
        )
    )
    permissions = set(grant_result.scalars().all())
    if not permissions:
        return project, AccessLevel.NONE
    if AccessPermission.WRITE in permissions:
        return project, AccessLevel.WRITE
    return project, AccessLevel.READ


async def verify_project_access(
    db: AsyncSession,
    project_id: UUID,
    user_id: UUID,
    required: AccessPermission = AccessPermission.READ,
) -> Project:
    """Return the project if the user holds at least `required` access, else 403."""
    project, level = await get_project_permission_level(db, project_id, user_id)

    allowed = level == AccessLevel.WRITE or (
        level == AccessLevel.READ and required == AccessPermission.READ
    )
    if not project or not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Project not found or you do not have access",
        )
    return project


async def has_write_access(db: AsyncSession, project_id: UUID, user_id: UUID) -> bool:
    _, level = await get_project_permission_level(db, project_id, user_id)
    return level == AccessLevel.WRITE


async def get_accessible_projects(db: AsyncSession, user_id: UUID) -> list[Project]:
    """Owned projects plus projects with an accepted partner grant."""
    result = await db.execute(
        select(Project)
        .where(
            Project.deleted_at.is_(None),
            or_(
                Project.owner_id == user_id,
                Project.id.in_(accepted_grants_subquery(user_id)),
            ),
        )
        .order_by(Project.created_at.desc())
    )
    return list(result.scalars().unique().all())


async def get_accessible_project_ids(db: AsyncSession, user_id: UUID) -> list[UUID]:
    projects = await get_accessible_projects(db, user_id)
    return [p.id for p in projects]


async def verify_multiple_projects_access(
    db: AsyncSession,
    project_ids: Iterable[UUID],
    user_id: UUID,
    required: AccessPermission = AccessPermission.READ,
) -> list[UUID]:
    """Subset of `project_ids` the user may access; denied ids are skipped."""
    allowed: list[UUID] = []
    for project_id in project_ids:
        try:
            await verify_project_access(db, project_id, user_id, required)
        except HTTPException:
            continue
        allowed.append(project_id)
    return allowed


def verify_entity_access(entity: Optional[T], entity_name: str) -> T:
    """404 when a looked-up entity is missing."""
    if entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity_name} not found",
        )
    return entity


def assert_project_owner(project: Any, user_id: UUID, operation: str) -> None:
    if project.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only project owners can {operation}",
        )


async def get_visible_contact(db: AsyncSession, contact_id: UUID, user_id: UUID) -> Contact:
    """A contact the user created or that is linked to one of their projects, else 404."""
    project_ids = await get_accessible_project_ids(db, user_id)
    linked = select(ProjectContact.contact_id).where(
        ProjectContact.project_id.in_(project_ids),
        ProjectContact.deleted_at.is_(None),
    )
    result = await db.execute(
        select(Contact).where(
            Contact.id == contact_id,
            Contact.deleted_at.is_(None),
            or_(Contact.created_by_id == user_id, Contact.id.in_(linked)),
        )
    )
    return verify_entity_access(result.unique().scalar_one_or_none(), "Contact")
