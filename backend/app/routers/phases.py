"""Construction phases router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.enums import AccessPermission
from app.models.phase import Phase
from app.schemas.base import SuccessResponse
from app.schemas.phase import (
    PhaseCreate,
    PhaseProgressUpdate,
    PhaseReorder,
    PhaseResponse,
    PhaseTemplateRequest,
    PhaseUpdate,
)
from app.services.authorization import verify_entity_access, verify_project_access
from app.services.phases import derive_phase_status, get_phase_template

router = APIRouter(tags=["phases"])


async def _project_phases(db: AsyncSession, project_id: UUID) -> list[Phase]:
    result = await db.execute(
        select(Phase).where(Phase.project_id == project_id).order_by(Phase.phase_number)
    )
    return list(result.scalars().all())


async def _get_writable_phase(db: AsyncSession, phase_id: UUID, user_id: UUID) -> Phase:
    result = await db.execute(select(Phase).where(Phase.id == phase_id))
    phase = verify_entity_access(result.scalar_one_or_none(), "Phase")
    await verify_project_access(db, phase.project_id, user_id, AccessPermission.WRITE)
    return phase


@router.get("/projects/{project_id}/phases", response_model=List[PhaseResponse])
async def list_phases(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Phases in order."""
    await verify_project_access(db, project_id, current_user.db_user_id)
    return [PhaseResponse.model_validate(p) for p in await _project_phases(db, project_id)]


@router.post(
    "/projects/{project_id}/phases/initialize",
    response_model=List[PhaseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def initialize_phases(
    project_id: UUID,
    data: PhaseTemplateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Create the standard phases for a project type."""
    await verify_project_access(db, project_id, current_user.db_user_id, AccessPermission.WRITE)

    count_result = await db.execute(
        select(func.count(Phase.id)).where(Phase.project_id == project_id)
    )
    if count_result.scalar():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Project already has phases",
        )

    for number, template in enumerate(get_phase_template(data.template_type), start=1):
        db.add(
            Phase(
                project_id=project_id,
                name=template.name,
                phase_number=number,
                phase_type=template.phase_type,
                description=template.description,
                progress=0,
            )
        )

    await db.commit()

    return [PhaseResponse.model_validate(p) for p in await _project_phases(db, project_id)]


@router.post(
    "/projects/{project_id}/phases",
    response_model=PhaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_phase(
    project_id: UUID,
    data: PhaseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Add a custom phase; numbering defaults to the end of the list."""
    await verify_project_access(db, project_id, current_user.db_user_id, AccessPermission.WRITE)

    phase_number = data.phase_number
    if phase_number is None:
        max_result = await db.execute(
            select(func.coalesce(func.max(Phase.phase_number), 0)).where(
                Phase.project_id == project_id
            )
        )
        phase_number = (max_result.scalar() or 0) + 1

    phase = Phase(
        project_id=project_id,
        **data.model_dump(exclude={"phase_number"}),
        phase_number=phase_number,
        progress=0,
    )
    db.add(phase)
    await db.commit()
    await db.refresh(phase)

    return PhaseResponse.model_validate(phase)


@router.post("/projects/{project_id}/phases/reorder", response_model=List[PhaseResponse])
async def reorder_phases(
    project_id: UUID,
    data: PhaseReorder,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Renumber phases 1..n in the given order."""
    await verify_project_access(db, project_id, current_user.db_user_id, AccessPermission.WRITE)

    phases = {p.id: p for p in await _project_phases(db, project_id)}
    if len(set(data.phase_ids)) != len(data.phase_ids) or any(
        pid not in phases for pid in data.phase_ids
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phase ids must be unique and belong to this project",
        )

    for number, phase_id in enumerate(data.phase_ids, start=1):
        phases[phase_id].phase_number = number

    await db.commit()

    return [PhaseResponse.model_validate(p) for p in await _project_phases(db, project_id)]


@router.patch("/phases/{phase_id}", response_model=PhaseResponse)
async def update_phase(
    phase_id: UUID,
    data: PhaseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    phase = await _get_writable_phase(db, phase_id, current_user.db_user_id)

    update_data = data.model_dump(exclude_unset=True)
    for field in ("name", "progress", "status"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be cleared",
            )

    for field, value in update_data.items():
        setattr(phase, field, value)

    await db.commit()
    await db.refresh(phase)

    return PhaseResponse.model_validate(phase)


@router.post("/phases/{phase_id}/progress", response_model=PhaseResponse)
async def update_phase_progress(
    phase_id: UUID,
    data: PhaseProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Set progress and derive the status from it."""
    phase = await _get_writable_phase(db, phase_id, current_user.db_user_id)

    phase.progress = data.progress
    phase.status = derive_phase_status(data.progress)

    await db.commit()
    await db.refresh(phase)

    return PhaseResponse.model_validate(phase)


@router.delete("/phases/{phase_id}", response_model=SuccessResponse)
async def delete_phase(
    phase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Permanently remove a phase."""
    phase = await _get_writable_phase(db, phase_id, current_user.db_user_id)

    await db.delete(phase)
    await db.commit()

    return SuccessResponse(success=True)
