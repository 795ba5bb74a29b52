from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_
from sqlalchemy.orm import selectinload
import uuid

from app.db.base import utc_now
from app.db.models.comment import Comment as CommentModel
from app.domains.comments.entities import Comment


class CommentRepository:
    """Репозиторий комментариев к страницам"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, comment: Comment) -> Comment:
        db_comment = CommentModel(
            id=comment.id,
            page_id=comment.page_id,
            user_id=comment.user_id,
            parent_id=comment.parent_id,
            content=comment.content
        )
        self.session.add(db_comment)
        await self.session.flush()
        return await self.get_by_id(db_comment.id)

    async def get_by_id(self, comment_id: uuid.UUID) -> Optional[Comment]:
        result = await self.session.execute(
            select(CommentModel)
            .options(selectinload(CommentModel.author))
            .where(CommentModel.id == comment_id)
            .execution_options(populate_existing=True)
        )
        db_comment = result.scalar_one_or_none()
        return self._to_domain(db_comment) if db_comment else None

    async def list_by_page(self, page_id: uuid.UUID) -> List[Comment]:
        """Комментарии страницы от старых к новым"""
        result = await self.session.execute(
            select(CommentModel)
            .options(selectinload(CommentModel.author))
            .where(CommentModel.page_id == page_id)
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
        )
        return [self._to_domain(c) for c in result.scalars().all()]

    async def update_content(self, comment_id: uuid.UUID, content: str) -> Optional[Comment]:
        await self.session.execute(
            update(CommentModel)
            .where(CommentModel.id == comment_id)
            .values(content=content, updated_at=utc_now())
        )
        await self.session.flush()
        return await self.get_by_id(comment_id)

    async def delete_with_replies(self, comment_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(CommentModel).where(
                or_(CommentModel.parent_id == comment_id, CommentModel.id == comment_id)
            )
        )
        return result.rowcount

    def _to_domain(self, db_comment: CommentModel) -> Comment:
        author = db_comment.author
        return Comment(
            id=db_comment.id,
            page_id=db_comment.page_id,
            user_id=db_comment.user_id,
            parent_id=db_comment.parent_id,
            content=db_comment.content,
            created_at=db_comment.created_at,
            updated_at=db_comment.updated_at,
            author_name=author.name if author else None,
            author_email=author.email if author else None,
            author_image=author.image if author else None
        )
