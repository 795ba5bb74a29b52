import logging
import uuid
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import AccessDenied, InvalidRequest, NotFound
from app.db.repositories.comment_repository import CommentRepository
from app.db.repositories.content_repository import PageRepository
from app.domains.access.policy import OwnershipResolver
from app.domains.comments.entities import Comment, CommentThread, build_threads
from app.domains.comments.schemas import CommentCreate, CommentUpdate
from app.domains.content.entities import Page
from app.domains.identity.entities import Principal

logger = logging.getLogger(__name__)


class CommentService:
    """Обсуждение страницы: ветки из комментария и ответов на него

    Читать и писать комментарии может любой, кто может читать страницу.
    Править комментарий может только автор, удалять - автор или admin.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.comment_repository = CommentRepository(session)
        self.page_repository = PageRepository(session)
        self.resolver = OwnershipResolver(session)

    async def _readable_page(self, slug: str, principal: Principal) -> Page:
        page = await self.page_repository.get_by_slug(slug)
        if not page:
            raise NotFound("Page not found")
        await self.resolver.require_read(principal, page)
        return page

    async def _comment(self, comment_id: uuid.UUID) -> Comment:
        comment = await self.comment_repository.get_by_id(comment_id)
        if not comment:
            raise NotFound("Comment not found")
        return comment

    async def page_threads(self, slug: str, principal: Principal) -> List[CommentThread]:
        page = await self._readable_page(slug, principal)
        return build_threads(await self.comment_repository.list_by_page(page.id))

    async def add_comment(self, slug: str, data: CommentCreate, principal: Principal) -> Comment:
        """Новый комментарий; ответ на ответ попадает в ту же ветку"""
        page = await self._readable_page(slug, principal)
        parent_id = None
        if data.parent_id is not None:
            parent = await self.comment_repository.get_by_id(data.parent_id)
            if not parent or parent.page_id != page.id:
                raise InvalidRequest("Parent comment not found on this page")
            parent_id = parent.parent_id or parent.id

        async with atomic(self.session):
            created = await self.comment_repository.create(
                Comment.create_comment(page.id, principal.id, data.content, parent_id)
            )
        logger.info("Comment %s added to page %s by %s", created.id, page.slug, principal.id)
        return created

    async def update_comment(self, comment_id: uuid.UUID, data: CommentUpdate, principal: Principal) -> Comment:
        comment = await self._comment(comment_id)
        if comment.user_id != principal.id:
            raise AccessDenied("You can only edit your own comments")

        async with atomic(self.session):
            updated = await self.comment_repository.update_content(comment.id, data.content)
        logger.info("Comment %s edited by %s", comment.id, principal.id)
        return updated

    async def delete_comment(self, comment_id: uuid.UUID, principal: Principal) -> None:
        """Удаление комментария вместе с ответами"""
        comment = await self._comment(comment_id)
        if comment.user_id != principal.id and not principal.is_admin:
            raise AccessDenied("You can only delete your own comments")

        async with atomic(self.session):
            removed = await self.comment_repository.delete_with_replies(comment.id)
        logger.info("Comment %s deleted by %s (%s rows)", comment.id, principal.id, removed)
