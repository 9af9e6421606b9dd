"""Documents router - base64 uploads backed by blob storage."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, get_client_ip, AuthenticatedUser
from app.models.cost import Cost
from app.models.document import ContactDocument, CostDocument, Document, EventDocument
from app.models.enums import AccessPermission, CategoryType
from app.models.event import Event
from app.models.project import Project
from app.schemas.base import BulkOperationResult, SuccessResponse
from app.schemas.document import (
    BulkDocumentDelete,
    BulkDocumentLink,
    DocumentResponse,
    DocumentUpload,
)
from app.services.audit import AuditService
from app.services.authorization import (
    get_visible_contact,
    verify_entity_access,
    verify_project_access,
)
from app.services.categories import get_valid_category
from app.services.notifications import NotificationService, notify_safely
from app.services.storage import (
    FileTooLargeError,
    InvalidFileDataError,
    StorageService,
    UnsupportedFileTypeError,
    get_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

LINK_MODELS = {
    "cost": (CostDocument, "cost_id"),
    "contact": (ContactDocument, "contact_id"),
    "event": (EventDocument, "event_id"),
}


async def _get_document(db: AsyncSession, document_id: UUID) -> Document:
    result = await db.execute(
        select(Document).where(Document.id == document_id, Document.deleted_at.is_(None))
    )
    return verify_entity_access(result.scalar_one_or_none(), "Document")


async def _mark_deleted(
    db: AsyncSession,
    document: Document,
    user_id: UUID,
    request: Request,
) -> None:
    """Soft delete a document the user's project owns. Caller commits and drops the blob."""
    result = await db.execute(select(Project.owner_id).where(Project.id == document.project_id))
    if result.scalar_one_or_none() != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to delete this document",
        )

    document.deleted_at = datetime.utcnow()

    audit = AuditService(db)
    await audit.log_document_deleted(
        document_id=document.id,
        project_id=document.project_id,
        user_id=user_id,
        file_name=document.file_name,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    data: DocumentUpload,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload a document (write access), optionally linking it to a cost."""
    project = await verify_project_access(
        db, data.project_id, current_user.db_user_id, AccessPermission.WRITE
    )
    await get_valid_category(db, data.category_id, CategoryType.DOCUMENT)

    if data.cost_id:
        cost_result = await db.execute(
            select(Cost.id).where(
                Cost.id == data.cost_id,
                Cost.project_id == data.project_id,
                Cost.deleted_at.is_(None),
            )
        )
        verify_entity_access(cost_result.scalar_one_or_none(), "Cost")

    document_id = uuid.uuid4()
    try:
        object_path, file_size = await storage.upload_document(
            project_id=data.project_id,
            document_id=document_id,
            file_name=data.file_name,
            mime_type=data.mime_type,
            file_data=data.file_data,
        )
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except InvalidFileDataError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    document = Document(
        id=document_id,
        project_id=data.project_id,
        file_name=data.file_name,
        file_size=file_size,
        mime_type=data.mime_type,
        blob_url=object_path,
        category_id=data.category_id,
        uploaded_by_id=current_user.db_user_id,
    )
    db.add(document)
    await db.flush()

    if data.cost_id:
        db.add(CostDocument(cost_id=data.cost_id, document_id=document_id))

    audit = AuditService(db)
    await audit.log_document_uploaded(
        document_id=document_id,
        project_id=data.project_id,
        user_id=current_user.db_user_id,
        file_name=data.file_name,
        file_size=file_size,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    await db.commit()
    await db.refresh(document)

    await notify_safely(
        db,
        NotificationService(db).notify_document_uploaded(project, document, current_user.db_user_id),
        "document_uploaded",
    )

    return DocumentResponse.model_validate(document)


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    project_id: UUID,
    category_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Non-deleted documents for a project, newest first."""
    await verify_project_access(db, project_id, current_user.db_user_id)

    query = select(Document).where(
        Document.project_id == project_id,
        Document.deleted_at.is_(None),
    )
    if category_id:
        query = query.where(Document.category_id == category_id)

    result = await db.execute(query.order_by(Document.created_at.desc()))
    return [DocumentResponse.model_validate(d) for d in result.scalars().all()]


@router.get("/orphaned", response_model=List[DocumentResponse])
async def list_orphaned_documents(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Documents not linked to any cost, contact or event."""
    await verify_project_access(db, project_id, current_user.db_user_id)

    query = select(Document).where(
        Document.project_id == project_id,
        Document.deleted_at.is_(None),
        Document.id.not_in(select(CostDocument.document_id)),
        Document.id.not_in(select(ContactDocument.document_id)),
        Document.id.not_in(select(EventDocument.document_id)),
    )

    result = await db.execute(query.order_by(Document.created_at.desc()))
    return [DocumentResponse.model_validate(d) for d in result.scalars().all()]


@router.post("/bulk-delete", response_model=BulkOperationResult)
async def bulk_delete_documents(
    request: Request,
    data: BulkDocumentDelete,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
    storage: StorageService = Depends(get_storage_service),
):
    """Delete documents one by one; failures are reported per item."""
    outcome = BulkOperationResult()
    blob_urls: list[str] = []

    for document_id in dict.fromkeys(data.document_ids):
        try:
            async with db.begin_nested():
                document = await _get_document(db, document_id)
                await _mark_deleted(db, document, current_user.db_user_id, request)
        except HTTPException as e:
            outcome.failed.append(document_id)
            outcome.errors.append(f"{document_id}: {e.detail}")
            continue
        except SQLAlchemyError as e:
            logger.error(f"[DOCUMENTS] Bulk delete failed for {document_id}: {e}")
            outcome.failed.append(document_id)
            outcome.errors.append(f"{document_id}: Failed to delete document")
            continue
        outcome.succeeded.append(document_id)
        blob_urls.append(document.blob_url)

    await db.commit()

    for blob_url in blob_urls:
        await storage.delete(blob_url)

    return outcome


@router.post("/bulk-link", response_model=BulkOperationResult)
async def bulk_link_documents(
    data: BulkDocumentLink,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Link documents to one cost, contact or event; failures are reported per item."""
    user_id = current_user.db_user_id
    entity_project_id: Optional[UUID] = None

    if data.entity_type == "cost":
        result = await db.execute(
            select(Cost.project_id).where(Cost.id == data.entity_id, Cost.deleted_at.is_(None))
        )
        entity_project_id = verify_entity_access(result.scalar_one_or_none(), "Cost")
    elif data.entity_type == "event":
        result = await db.execute(
            select(Event.project_id).where(Event.id == data.entity_id, Event.deleted_at.is_(None))
        )
        entity_project_id = verify_entity_access(result.scalar_one_or_none(), "Event")
    else:
        await get_visible_contact(db, data.entity_id, user_id)

    if entity_project_id:
        await verify_project_access(db, entity_project_id, user_id, AccessPermission.WRITE)

    link_model, link_column = LINK_MODELS[data.entity_type]
    outcome = BulkOperationResult()
    linked_by_project: dict[UUID, list[UUID]] = {}

    for document_id in dict.fromkeys(data.document_ids):
        try:
            async with db.begin_nested():
                document = await _get_document(db, document_id)
                if entity_project_id and document.project_id != entity_project_id:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Document belongs to a different project",
                    )
                await verify_project_access(db, document.project_id, user_id, AccessPermission.WRITE)

                existing = await db.execute(
                    select(link_model).where(
                        getattr(link_model, link_column) == data.entity_id,
                        link_model.document_id == document_id,
                    )
                )
                if not existing.scalar_one_or_none():
                    db.add(link_model(**{link_column: data.entity_id, "document_id": document_id}))
                    await db.flush()
        except HTTPException as e:
            outcome.failed.append(document_id)
            outcome.errors.append(f"{document_id}: {e.detail}")
            continue
        except SQLAlchemyError as e:
            logger.error(f"[DOCUMENTS] Bulk link failed for {document_id}: {e}")
            outcome.failed.append(document_id)
            outcome.errors.append(f"{document_id}: Failed to link document")
            continue
        outcome.succeeded.append(document_id)
        linked_by_project.setdefault(document.project_id, []).append(document_id)

    audit = AuditService(db)
    for project_id, document_ids in linked_by_project.items():
        await audit.log_documents_linked(
            entity_type=data.entity_type,
            entity_id=data.entity_id,
            project_id=project_id,
            user_id=user_id,
            document_ids=document_ids,
        )

    await db.commit()

    return outcome


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    document = await _get_document(db, document_id)
    await verify_project_access(db, document.project_id, current_user.db_user_id)

    return DocumentResponse.model_validate(document)


@router.get("/{document_id}/download")
async def download_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
    storage: StorageService = Depends(get_storage_service),
):
    """Stream the stored bytes back with their content type."""
    document = await _get_document(db, document_id)
    await verify_project_access(db, document.project_id, current_user.db_user_id)

    try:
        content = await storage.download(document.blob_url)
    except FileNotFoundError:
        logger.error(f"[STORAGE] Missing blob for document {document_id}: {document.blob_url}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document file not found",
        )

    return Response(
        content=content,
        media_type=document.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_document(
    request: Request,
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
    storage: StorageService = Depends(get_storage_service),
):
    """Soft delete a document (project owner only)."""
    document = await _get_document(db, document_id)
    await _mark_deleted(db, document, current_user.db_user_id, request)
    await db.commit()
    await storage.delete(document.blob_url)

    return SuccessResponse(success=True)
