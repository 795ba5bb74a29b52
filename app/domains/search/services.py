import logging
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.content.entities import ContentKind
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal
from app.domains.search.entities import (
    SearchResult, search_terms, to_result, TYPE_LIMIT, PAGE_LIMIT, TOTAL_LIMIT
)

logger = logging.getLogger(__name__)


class SearchService:
    """Поиск по названиям, описаниям и тексту страниц

    Кандидаты отбираются в БД, вес считается в Python, в выдачу попадает
    только то, что участник может читать.
    """

    def __init__(self, session: AsyncSession):
        self.content_service = ContentService(session)
        self.resolver = self.content_service.resolver

    async def search(
        self,
        query: str,
        principal: Principal,
        kind: Optional[ContentKind] = None
    ) -> List[SearchResult]:
        terms = search_terms(query)
        if not terms:
            return []

        phrase = query.strip()
        kinds = [kind] if kind is not None else list(ContentKind)
        results = []
        for current in kinds:
            limit = PAGE_LIMIT if current == ContentKind.PAGE else TYPE_LIMIT
            candidates = await self.content_service.repository_for(current).search(phrase, terms)
            found = []
            for entity in candidates:
                if await self.resolver.can_read(principal, entity):
                    found.append(to_result(entity, phrase, terms))
            found.sort(key=lambda r: r.rank, reverse=True)
            results.extend(found[:limit])

        results.sort(key=lambda r: r.rank, reverse=True)
        logger.debug("Search %r by %s: %s results", phrase, principal.id, len(results))
        return results[:TOTAL_LIMIT]
