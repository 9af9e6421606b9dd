"""Projects router."""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, get_client_ip, AuthenticatedUser
from app.models.cost import Cost
from app.models.document import Document
from app.models.enums import AccessLevel, AccessPermission, ProjectStatus
from app.models.project import Address, Project, ProjectAccess
from app.schemas.base import SuccessResponse
from app.schemas.project import (
    AddressInput,
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectStatsResponse,
    format_address,
)
from app.schemas.security import AuditLogResponse
from app.services.audit import AuditService
from app.services.authorization import (
    assert_project_owner,
    get_accessible_projects,
    get_project_permission_level,
    verify_project_access,
    verify_project_ownership,
)

router = APIRouter(prefix="/projects", tags=["projects"])


def _to_response(project: Project, level: AccessLevel) -> ProjectResponse:
    response = ProjectResponse.model_validate(project)
    response.access_level = level
    return response


def _apply_address(address: Address, data: AddressInput) -> None:
    for field, value in data.model_dump().items():
        setattr(address, field, value)
    address.formatted_address = format_address(data)


async def _load_project(db: AsyncSession, project_id: UUID) -> Project:
    result = await db.execute(
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: Request,
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Create a project and its address. The caller becomes the owner."""
    address = Address()
    _apply_address(address, data.address)
    db.add(address)
    await db.flush()

    project = Project(
        owner_id=current_user.db_user_id,
        address_id=address.id,
        name=data.name,
        description=data.description,
        project_type=data.project_type,
        status=ProjectStatus.PLANNING,
        start_date=data.start_date,
        end_date=data.end_date,
        total_budget=data.total_budget,
    )
    db.add(project)
    await db.flush()

    audit = AuditService(db)
    await audit.log_project_created(
        project_id=project.id,
        user_id=current_user.db_user_id,
        name=project.name,
        ip_address=get_client_ip(request),
    )

    await db.commit()

    return _to_response(await _load_project(db, project.id), AccessLevel.WRITE)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Owned projects plus projects shared with the caller, newest first."""
    projects = await get_accessible_projects(db, current_user.db_user_id)

    grants_result = await db.execute(
        select(ProjectAccess.project_id, ProjectAccess.permission).where(
            ProjectAccess.user_id == current_user.db_user_id,
            ProjectAccess.accepted_at.is_not(None),
            ProjectAccess.deleted_at.is_(None),
        )
    )
    levels: dict[UUID, AccessLevel] = {}
    for project_id, permission in grants_result.all():
        if permission == AccessPermission.WRITE or project_id not in levels:
            levels[project_id] = AccessLevel(permission.value)

    return [
        _to_response(
            p,
            AccessLevel.WRITE if p.owner_id == current_user.db_user_id else levels.get(p.id, AccessLevel.READ),
        )
        for p in projects
    ]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Get a project the caller owns or has accepted access to."""
    project, level = await get_project_permission_level(db, project_id, current_user.db_user_id)
    if not project or level == AccessLevel.NONE:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    return _to_response(project, level)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    request: Request,
    project_id: UUID,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Update a project (owner only)."""
    project = await verify_project_ownership(db, project_id, current_user.db_user_id)

    update_data = data.model_dump(exclude_unset=True, exclude={"address"})

    start = update_data.get("start_date", project.start_date)
    end = update_data.get("end_date", project.end_date)
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be on or after start_date",
        )

    changes = {}
    for field, value in update_data.items():
        old = getattr(project, field)
        if old != value:
            changes[field] = {"from": _jsonable(old), "to": _jsonable(value)}
        setattr(project, field, value)

    if data.address is not None:
        if project.address is None:
            address = Address()
            _apply_address(address, data.address)
            project.address = address
        else:
            _apply_address(project.address, data.address)
        changes["address"] = {"to": format_address(data.address)}

    if changes:
        audit = AuditService(db)
        await audit.log_project_updated(
            project_id=project.id,
            user_id=current_user.db_user_id,
            changes=changes,
            ip_address=get_client_ip(request),
        )

    await db.commit()

    return _to_response(await _load_project(db, project_id), AccessLevel.WRITE)


@router.delete("/{project_id}", response_model=SuccessResponse)
async def delete_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Soft delete a project (owner only)."""
    project = await verify_project_ownership(db, project_id, current_user.db_user_id)
    project.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)


@router.get("/{project_id}/stats", response_model=ProjectStatsResponse)
async def get_project_stats(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Budget and spend totals over non-deleted costs and documents."""
    project = await verify_project_access(db, project_id, current_user.db_user_id)

    cost_result = await db.execute(
        select(func.coalesce(func.sum(Cost.amount), 0), func.count(Cost.id)).where(
            Cost.project_id == project_id,
            Cost.deleted_at.is_(None),
        )
    )
    total_spent, cost_count = cost_result.one()

    doc_result = await db.execute(
        select(func.count(Document.id)).where(
            Document.project_id == project_id,
            Document.deleted_at.is_(None),
        )
    )
    document_count = doc_result.scalar() or 0

    return build_stats(project, int(total_spent or 0), cost_count or 0, document_count)


def build_stats(project: Project, total_spent: int, cost_count: int, document_count: int) -> ProjectStatsResponse:
    budget = project.total_budget
    return ProjectStatsResponse(
        project_id=project.id,
        total_budget=budget,
        total_spent=total_spent,
        budget_remaining=budget - total_spent if budget else None,
        budget_used_percent=round(total_spent / budget * 100, 2) if budget else None,
        cost_count=cost_count,
        document_count=document_count,
    )


@router.get("/{project_id}/audit-log", response_model=List[AuditLogResponse])
async def get_project_audit_log(
    project_id: UUID,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Newest audit entries for a project (owner only)."""
    project, _ = await get_project_permission_level(db, project_id, current_user.db_user_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    assert_project_owner(project, current_user.db_user_id, "view the audit log")

    audit = AuditService(db)
    entries = await audit.list_for_project(project_id, limit=min(max(limit, 1), 500))
    return [AuditLogResponse.model_validate(e) for e in entries]


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value
