"""Comments router - one-level threads on costs, documents and events."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_user, AuthenticatedUser
from app.models.comment import Comment
from app.models.cost import Cost
from app.models.document import Document
from app.models.enums import CommentEntityType
from app.models.event import Event
from app.models.project import Project
from app.models.user import User
from app.schemas.base import SuccessResponse
from app.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from app.services.authorization import verify_entity_access, verify_project_access
from app.services.notifications import NotificationService, notify_safely

router = APIRouter(prefix="/comments", tags=["comments"])

# entity type -> (model, creator column)
COMMENTABLE = {
    CommentEntityType.COST: (Cost, "created_by_id"),
    CommentEntityType.DOCUMENT: (Document, "uploaded_by_id"),
    CommentEntityType.EVENT: (Event, "created_by_id"),
}


async def _resolve_entity(
    db: AsyncSession,
    entity_type: CommentEntityType,
    entity_id: UUID,
    user_id: UUID,
) -> tuple[Project, Optional[UUID]]:
    """Project and creator of a commentable entity the user can read."""
    model, creator_column = COMMENTABLE[entity_type]
    result = await db.execute(
        select(model.project_id, getattr(model, creator_column)).where(
            model.id == entity_id,
            model.deleted_at.is_(None),
        )
    )
    row = result.first()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity_type.value.capitalize()} not found",
        )
    project_id, creator_id = row
    project = await verify_project_access(db, project_id, user_id)
    return project, creator_id


async def _get_own_comment(db: AsyncSession, comment_id: UUID, user_id: UUID) -> Comment:
    result = await db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.deleted_at.is_(None))
    )
    comment = verify_entity_access(result.scalar_one_or_none(), "Comment")
    if comment.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own comments",
        )
    return comment


def _to_response(comment: Comment, author: Optional[User]) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    if author:
        response.author_name = author.full_name or author.email
    return response


def nest_comments(comments: list[CommentResponse]) -> list[CommentResponse]:
    """Attach replies to their parents; input is oldest first."""
    top_level: list[CommentResponse] = []
    by_id = {c.id: c for c in comments}
    for comment in comments:
        parent = by_id.get(comment.parent_comment_id) if comment.parent_comment_id else None
        if parent:
            parent.replies.append(comment)
        elif not comment.parent_comment_id:
            top_level.append(comment)
    return top_level


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Comment on an entity, or reply to a top-level comment."""
    user_id = current_user.db_user_id
    project, creator_id = await _resolve_entity(db, data.entity_type, data.entity_id, user_id)

    if data.parent_comment_id:
        parent_result = await db.execute(
            select(Comment).where(
                Comment.id == data.parent_comment_id,
                Comment.entity_type == data.entity_type,
                Comment.entity_id == data.entity_id,
                Comment.deleted_at.is_(None),
            )
        )
        parent = verify_entity_access(parent_result.scalar_one_or_none(), "Parent comment")
        if parent.parent_comment_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reply to a reply - only one level nesting allowed",
            )

    comment = Comment(
        entity_type=data.entity_type,
        entity_id=data.entity_id,
        project_id=project.id,
        user_id=user_id,
        content=data.content,
        parent_comment_id=data.parent_comment_id,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    author_result = await db.execute(select(User).where(User.id == user_id))
    author = author_result.scalar_one()

    await notify_safely(
        db,
        NotificationService(db).notify_comment_added(project, comment, author, creator_id),
        "comment_added",
    )

    return _to_response(comment, author)


@router.get("", response_model=List[CommentResponse])
async def list_comments(
    entity_type: CommentEntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Comments on an entity, oldest first, replies nested under parents."""
    await _resolve_entity(db, entity_type, entity_id, current_user.db_user_id)

    result = await db.execute(
        select(Comment, User)
        .outerjoin(User, Comment.user_id == User.id)
        .where(
            Comment.entity_type == entity_type,
            Comment.entity_id == entity_id,
            Comment.deleted_at.is_(None),
        )
        .order_by(Comment.created_at.asc())
    )
    return nest_comments([_to_response(c, u) for c, u in result.all()])


@router.patch("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    comment = await _get_own_comment(db, comment_id, current_user.db_user_id)
    comment.content = data.content
    await db.commit()
    await db.refresh(comment)

    author_result = await db.execute(select(User).where(User.id == comment.user_id))
    return _to_response(comment, author_result.scalar_one_or_none())


@router.delete("/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    comment = await _get_own_comment(db, comment_id, current_user.db_user_id)
    comment.deleted_at = datetime.utcnow()
    await db.commit()

    return SuccessResponse(success=True)
