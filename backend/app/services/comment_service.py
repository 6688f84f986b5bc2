"""
Threaded comments on documents.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.document import DocumentComment
from app.models.user import User
from app.schemas.document import CommentResponse
from app.services.access_service import AccessService
from app.services.document_service import document_service
from app.services.role_authority import Action, Resource, Role, is_at_least
from app.utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError


def to_response(comment: DocumentComment, author: Optional[User] = None) -> CommentResponse:
    author = author or comment.author
    return CommentResponse(
        id=comment.id,
        document_id=comment.document_id,
        user_id=comment.user_id,
        content=comment.content,
        parent_id=comment.parent_id,
        user_name=author.full_name if author else "Unknown",
        user_avatar=author.avatar_url if author else None,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


class CommentService:

    async def list_comments(
        self,
        actor: User,
        document_id: UUID,
        access: AccessService,
        db: AsyncSession,
    ) -> List[CommentResponse]:
        document = await document_service.get_by_id(document_id, db)
        await document_service.ensure_visible(actor, document, access)

        result = await db.execute(
            select(DocumentComment)
            .options(selectinload(DocumentComment.author))
            .where(DocumentComment.document_id == document.id)
            .order_by(DocumentComment.created_at.asc())
        )
        return [to_response(c) for c in result.scalars().all()]

    async def add_comment(
        self,
        actor: User,
        document_id: UUID,
        content: str,
        access: AccessService,
        db: AsyncSession,
        parent_id: Optional[UUID] = None,
    ) -> CommentResponse:
        document = await document_service.get_by_id(document_id, db)
        await document_service.ensure_visible(actor, document, access)

        if not content.strip():
            raise ValidationError("Comment cannot be empty", field="content")

        if parent_id is not None:
            parent = await db.get(DocumentComment, parent_id)
            if parent is None or parent.document_id != document.id:
                raise NotFoundError("Comment", str(parent_id))

        comment = DocumentComment(
            document_id=document.id,
            user_id=actor.id,
            content=content.strip(),
            parent_id=parent_id,
        )
        db.add(comment)
        await db.commit()
        await db.refresh(comment)
        return to_response(comment, author=actor)

    async def delete_comment(
        self,
        actor: User,
        comment_id: UUID,
        access: AccessService,
        db: AsyncSession,
    ) -> None:
        comment = await db.get(DocumentComment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", str(comment_id))

        document = await document_service.get_by_id(comment.document_id, db)
        await access.require(actor, Action.READ, Resource.DOCUMENT, resource_org_id=document.org_id)

        is_author = str(comment.user_id) == str(actor.id)
        if not is_author and not is_at_least(actor.role, Role.ADMIN):
            raise PermissionDeniedError("Only the author or an admin can delete this comment", rule="comment_author")

        await db.delete(comment)
        await db.commit()


comment_service = CommentService()
