import logging
import uuid
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import NotFound
from app.db.repositories.content_repository import PageRepository
from app.db.repositories.revision_repository import RevisionRepository
from app.domains.access.policy import OwnershipResolver
from app.domains.content.entities import Page
from app.domains.identity.entities import Principal
from app.domains.revisions.entities import Revision

logger = logging.getLogger(__name__)


class RevisionStore:
    """История страницы: только добавление, восстановление как новая правка

    Ревизия хранит содержимое страницы до правки. Номер ревизии выдается
    под блокировкой строки страницы; на SQLite транзакции открываются
    через BEGIN IMMEDIATE.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.page_repository = PageRepository(session)
        self.revision_repository = RevisionRepository(session)
        self.resolver = OwnershipResolver(session)

    async def apply_edit(
        self,
        page_id: uuid.UUID,
        new_content: Optional[str],
        new_html: Optional[str],
        editor_id: Optional[uuid.UUID],
        **page_fields
    ) -> Revision:
        """Снимок текущего содержимого и запись нового (внутри открытой транзакции)"""
        page = await self.page_repository.lock_for_update(page_id)
        if not page:
            raise NotFound("Page not found")

        next_number = await self.revision_repository.max_number(page_id) + 1
        revision = Revision.snapshot(
            page_id=page_id,
            content=page.content,
            html=page.html,
            revision_number=next_number,
            created_by=editor_id
        )
        await self.revision_repository.create(revision)
        await self.page_repository.update(page_id, content=new_content or "", html=new_html, **page_fields)
        return revision

    async def record_edit(
        self,
        page_id: uuid.UUID,
        new_content: Optional[str],
        new_html: Optional[str],
        editor: Principal
    ) -> uuid.UUID:
        """Правка содержимого страницы с записью ревизии"""
        async with atomic(self.session):
            revision = await self.apply_edit(page_id, new_content, new_html, editor.id)
        logger.info("Page %s edited by %s, revision %s", page_id, editor.id, revision.revision_number)
        return revision.id

    async def restore(self, page_id: uuid.UUID, revision_id: uuid.UUID, editor: Principal) -> Revision:
        """Восстановление ревизии: текущее содержимое сохраняется новой ревизией"""
        async with atomic(self.session):
            target = await self.revision_repository.get(page_id, revision_id)
            if not target:
                raise NotFound("Revision not found")
            snapshot = await self.apply_edit(page_id, target.content, target.html, editor.id)
        logger.info(
            "Page %s restored to revision %s by %s, snapshot %s",
            page_id, target.revision_number, editor.id, snapshot.revision_number
        )
        return snapshot

    async def list_revisions(self, page_id: uuid.UUID, limit: int = 100, offset: int = 0) -> List[Revision]:
        """Ревизии от новых к старым"""
        return await self.revision_repository.list_for_page(page_id, limit, offset)

    async def count(self, page_id: uuid.UUID) -> int:
        return await self.revision_repository.count(page_id)

    async def _page(self, slug: str) -> Page:
        page = await self.page_repository.get_by_slug(slug)
        if not page:
            raise NotFound("Page not found")
        return page

    async def page_revisions(self, slug: str, principal: Principal, limit: int = 100, offset: int = 0):
        """Ревизии страницы по slug с проверкой чтения"""
        page = await self._page(slug)
        await self.resolver.require_read(principal, page)
        return await self.list_revisions(page.id, limit, offset), await self.count(page.id)

    async def restore_page_revision(self, slug: str, revision_id: str, principal: Principal) -> Revision:
        """Восстановление ревизии страницы по slug с проверкой управления

        Нераспознаваемый id ревизии означает отсутствующую ревизию.
        """
        page = await self._page(slug)
        await self.resolver.require_manage(principal, page)
        try:
            target_id = uuid.UUID(str(revision_id))
        except ValueError:
            raise NotFound("Revision not found")
        return await self.restore(page.id, target_id, principal)
