"""Global full-text search across projects, costs, contacts and documents."""

import logging
import re
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact, ProjectContact
from app.models.cost import Cost
from app.models.document import Document
from app.models.enums import ProjectType, SearchEntityType
from app.models.project import Project
from app.schemas.search import ProjectContext, SearchRequest, SearchResponse, SearchResult
from app.services.authorization import get_accessible_projects

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 150
_NON_WORD = re.compile(r"[^\w\s]")


def sanitize_search_query(query: str) -> str:
    """Turn free text into an AND-joined tsquery, e.g. "123 Main St." -> "123 & main & st"."""
    cleaned = _NON_WORD.sub(" ", query.strip().lower())
    return " & ".join(cleaned.split())


def truncate_text(text: Optional[str], max_length: int = PREVIEW_LENGTH) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."


def format_file_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.1f} KB"


def project_preview(description: Optional[str], project_type: ProjectType | str) -> str:
    if description:
        return truncate_text(description)
    type_label = project_type.value if isinstance(project_type, ProjectType) else project_type
    return f"Project: {type_label}"


def cost_preview(amount_cents: int) -> str:
    return f"Amount: ${amount_cents / 100:.2f}"


def contact_preview(company: Optional[str], email: Optional[str]) -> str:
    return " • ".join(part for part in (company, email) if part)


def document_preview(mime_type: str, file_size: int) -> str:
    return f"{mime_type} • {format_file_size(file_size)}"


class SearchService:
    """Ranks matches with Postgres `ts_rank` over generated search vectors."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def global_search(self, request: SearchRequest, user_id: UUID) -> SearchResponse:
        ts_query_text = sanitize_search_query(request.query)
        if not ts_query_text:
            return SearchResponse(results=[], total_count=0)

        projects = await get_accessible_projects(self.db, user_id)
        if not projects:
            return SearchResponse(results=[], total_count=0)

        project_names = {p.id: p.name for p in projects}
        if request.project_id:
            if request.project_id not in project_names:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You do not have access to this project",
                )
            target_ids = [request.project_id]
        else:
            target_ids = list(project_names)

        entity_types = request.entity_types or list(SearchEntityType)
        ts_query = func.to_tsquery("english", ts_query_text)

        results: list[SearchResult] = []
        if SearchEntityType.PROJECT in entity_types:
            results += await self._search_projects(ts_query, target_ids, request)
        if SearchEntityType.COST in entity_types:
            results += await self._search_costs(ts_query, target_ids, project_names, request)
        if SearchEntityType.CONTACT in entity_types:
            results += await self._search_contacts(ts_query, target_ids, project_names, request)
        if SearchEntityType.DOCUMENT in entity_types:
            results += await self._search_documents(ts_query, target_ids, project_names, request)

        results.sort(key=lambda r: r.rank, reverse=True)
        logger.debug(f"[SEARCH] {len(results)} hits for {ts_query_text!r}")
        return SearchResponse(results=results[: request.limit], total_count=len(results))

    @staticmethod
    def _date_range(query, column, request: SearchRequest):
        if request.date_from:
            query = query.where(column >= request.date_from)
        if request.date_to:
            query = query.where(column <= request.date_to)
        return query

    async def _search_projects(self, ts_query, target_ids, request) -> list[SearchResult]:
        rank = func.ts_rank(Project.search_vector, ts_query).label("rank")
        query = (
            select(Project.id, Project.name, Project.description, Project.project_type,
                   Project.created_at, rank)
            .where(
                Project.search_vector.op("@@")(ts_query),
                Project.deleted_at.is_(None),
                Project.id.in_(target_ids),
            )
        )
        query = self._date_range(query, Project.created_at, request)
        rows = await self.db.execute(query.order_by(rank.desc()).limit(request.limit))
        return [
            SearchResult(
                id=row.id,
                entity_type=SearchEntityType.PROJECT,
                title=row.name,
                preview=project_preview(row.description, row.project_type),
                rank=float(row.rank),
                project_context=ProjectContext(project_id=row.id, project_name=row.name),
                matched_fields=["name", "description"],
                created_at=row.created_at,
            )
            for row in rows.all()
        ]

    async def _search_costs(self, ts_query, target_ids, project_names, request) -> list[SearchResult]:
        rank = func.ts_rank(Cost.search_vector, ts_query).label("rank")
        query = (
            select(Cost.id, Cost.description, Cost.amount, Cost.project_id, Cost.created_at, rank)
            .where(
                Cost.search_vector.op("@@")(ts_query),
                Cost.deleted_at.is_(None),
                Cost.project_id.in_(target_ids),
            )
        )
        query = self._date_range(query, Cost.date, request)
        rows = await self.db.execute(query.order_by(rank.desc()).limit(request.limit))
        return [
            SearchResult(
                id=row.id,
                entity_type=SearchEntityType.COST,
                title=row.description,
                preview=cost_preview(row.amount),
                rank=float(row.rank),
                project_context=ProjectContext(
                    project_id=row.project_id,
                    project_name=project_names.get(row.project_id, "Unknown Project"),
                ),
                matched_fields=["description"],
                created_at=row.created_at,
            )
            for row in rows.all()
        ]

    async def _search_contacts(self, ts_query, target_ids, project_names, request) -> list[SearchResult]:
        links = await self.db.execute(
            select(ProjectContact.contact_id, ProjectContact.project_id).where(
                ProjectContact.project_id.in_(target_ids),
                ProjectContact.deleted_at.is_(None),
            )
        )
        contact_projects: dict[UUID, UUID] = {}
        for contact_id, project_id in links.all():
            contact_projects.setdefault(contact_id, project_id)
        if not contact_projects:
            return []

        rank = func.ts_rank(Contact.search_vector, ts_query).label("rank")
        query = (
            select(Contact.id, Contact.first_name, Contact.last_name, Contact.company,
                   Contact.email, Contact.created_at, rank)
            .where(
                Contact.search_vector.op("@@")(ts_query),
                Contact.deleted_at.is_(None),
                Contact.id.in_(list(contact_projects)),
            )
        )
        query = self._date_range(query, Contact.created_at, request)
        rows = await self.db.execute(query.order_by(rank.desc()).limit(request.limit))

        results = []
        for row in rows.all():
            project_id = contact_projects[row.id]
            results.append(
                SearchResult(
                    id=row.id,
                    entity_type=SearchEntityType.CONTACT,
                    title=f"{row.first_name} {row.last_name or ''}".strip(),
                    preview=contact_preview(row.company, row.email),
                    rank=float(row.rank),
                    project_context=ProjectContext(
                        project_id=project_id,
                        project_name=project_names.get(project_id, "Unknown Project"),
                    ),
                    matched_fields=["name", "company", "email", "notes"],
                    created_at=row.created_at,
                )
            )
        return results

    async def _search_documents(self, ts_query, target_ids, project_names, request) -> list[SearchResult]:
        rank = func.ts_rank(Document.search_vector, ts_query).label("rank")
        query = (
            select(Document.id, Document.file_name, Document.mime_type, Document.file_size,
                   Document.project_id, Document.created_at, rank)
            .where(
                Document.search_vector.op("@@")(ts_query),
                Document.deleted_at.is_(None),
                Document.project_id.in_(target_ids),
            )
        )
        query = self._date_range(query, Document.created_at, request)
        rows = await self.db.execute(query.order_by(rank.desc()).limit(request.limit))
        return [
            SearchResult(
                id=row.id,
                entity_type=SearchEntityType.DOCUMENT,
                title=row.file_name,
                preview=document_preview(row.mime_type, row.file_size),
                rank=float(row.rank),
                project_context=ProjectContext(
                    project_id=row.project_id,
                    project_name=project_names.get(row.project_id, "Unknown Project"),
                ),
                matched_fields=["file_name"],
                created_at=row.created_at,
            )
            for row in rows.all()
        ]
