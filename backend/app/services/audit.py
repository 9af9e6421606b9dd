"""Audit logging service."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog
from app.models.enums import AuditAction


class AuditService:
    """Service for creating and reading audit log entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: UUID,
        user_id: Optional[UUID] = None,
        project_id: Optional[UUID] = None,
        changes: Optional[dict[str, Any]] = None,
        metadata: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Create an audit log entry."""
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            project_id=project_id,
            changes=changes,
            metadata_=metadata or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_project_created(
        self,
        project_id: UUID,
        user_id: UUID,
        name: str,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        return await self.log(
            action=AuditAction.CREATED,
            entity_type="project",
            entity_id=project_id,
            project_id=project_id,
            user_id=user_id,
            metadata={"name": name},
            ip_address=ip_address,
        )

    async def log_project_updated(
        self,
        project_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        return await self.log(
            action=AuditAction.UPDATED,
            entity_type="project",
            entity_id=project_id,
            project_id=project_id,
            user_id=user_id,
            changes=changes,
            ip_address=ip_address,
        )

    async def log_document_uploaded(
        self,
        document_id: UUID,
        project_id: UUID,
        user_id: UUID,
        file_name: str,
        file_size: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Log a document upload."""
        return await self.log(
            action=AuditAction.UPLOADED,
            entity_type="document",
            entity_id=document_id,
            project_id=project_id,
            user_id=user_id,
            metadata={"file_name": file_name, "file_size": file_size},
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def log_document_deleted(
        self,
        document_id: UUID,
        project_id: UUID,
        user_id: UUID,
        file_name: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Log a document soft delete."""
        return await self.log(
            action=AuditAction.DELETED,
            entity_type="document",
            entity_id=document_id,
            project_id=project_id,
            user_id=user_id,
            metadata={"file_name": file_name},
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def log_documents_linked(
        self,
        entity_type: str,
        entity_id: UUID,
        project_id: UUID,
        user_id: UUID,
        document_ids: list[UUID],
    ) -> AuditLog:
        return await self.log(
            action=AuditAction.LINKED,
            entity_type=entity_type,
            entity_id=entity_id,
            project_id=project_id,
            user_id=user_id,
            metadata={"document_ids": [str(d) for d in document_ids]},
        )

    async def log_partner_invited(
        self,
        access_id: UUID,
        project_id: UUID,
        user_id: UUID,
        invited_email: str,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """Log partner invitation sent."""
        return await self.log(
            action=AuditAction.INVITED,
            entity_type="project_access",
            entity_id=access_id,
            project_id=project_id,
            user_id=user_id,
            metadata={"invited_email": invited_email},
            ip_address=ip_address,
        )

    async def log_partner_accepted(
        self,
        access_id: UUID,
        project_id: UUID,
        user_id: UUID,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """Log partner invitation accepted."""
        return await self.log(
            action=AuditAction.ACCEPTED,
            entity_type="project_access",
            entity_id=access_id,
            project_id=project_id,
            user_id=user_id,
            ip_address=ip_address,
        )

    async def log_partner_revoked(
        self,
        access_id: UUID,
        project_id: UUID,
        user_id: UUID,
    ) -> AuditLog:
        return await self.log(
            action=AuditAction.REVOKED,
            entity_type="project_access",
            entity_id=access_id,
            project_id=project_id,
            user_id=user_id,
        )

    async def list_for_project(self, project_id: UUID, limit: int = 100) -> list[AuditLog]:
        """Newest entries recorded against a project."""
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.project_id == project_id)
            .order_by(AuditLog.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
