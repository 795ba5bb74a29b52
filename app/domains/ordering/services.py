import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.db.repositories.content_repository import ChapterRepository, PageRepository
from app.domains.access.policy import OwnershipResolver
from app.domains.identity.entities import Principal
from app.domains.ordering.entities import SiblingType

logger = logging.getLogger(__name__)


class ReorderEngine:
    """Порядок соседей: глав в книге и страниц в главе или книге"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.chapter_repository = ChapterRepository(session)
        self.page_repository = PageRepository(session)
        self.resolver = OwnershipResolver(session)

    def _repository(self, sibling_type: SiblingType):
        if sibling_type == SiblingType.CHAPTERS:
            return self.chapter_repository
        return self.page_repository

    async def reorder(
        self,
        sibling_type: SiblingType,
        ordered_ids: Sequence[uuid.UUID],
        principal: Principal
    ) -> int:
        """sort_order = индекс в списке для каждого id, одной транзакцией

        Неизвестные id пропускаются. Не переданные соседи сохраняют прежний
        sort_order, непрерывность в этом случае не восстанавливается.
        """
        repository = self._repository(sibling_type)
        found = await repository.get_many(ordered_ids)
        for entity in found:
            await self.resolver.require_manage(principal, entity)

        async with atomic(self.session):
            updated = await repository.set_sort_orders(ordered_ids, datetime.now(timezone.utc))
        logger.info(
            "Reordered %s %s of %s requested by %s",
            updated, sibling_type.value, len(ordered_ids), principal.id
        )
        return updated

    async def resequence_chapters(self, book_id: uuid.UUID) -> None:
        """Непрерывные 0..n-1 для глав книги в текущем порядке (без commit)"""
        chapters = await self.chapter_repository.list_by_book(book_id)
        await self._resequence(self.chapter_repository, [c.id for c in chapters], [c.sort_order for c in chapters])

    async def resequence_pages(
        self,
        book_id: Optional[uuid.UUID],
        chapter_id: Optional[uuid.UUID],
        created_by: Optional[uuid.UUID] = None
    ) -> None:
        """Непрерывные 0..n-1 для страниц главы, прямых страниц книги
        или личных страниц автора без книги (без commit)"""
        pages = await self.page_repository.list_siblings(book_id, chapter_id, created_by)
        await self._resequence(self.page_repository, [p.id for p in pages], [p.sort_order for p in pages])

    async def _resequence(self, repository, ids, current) -> None:
        if current == list(range(len(ids))):
            return
        await repository.set_sort_orders(ids, datetime.now(timezone.utc))
