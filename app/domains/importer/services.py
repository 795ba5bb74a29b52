import logging
import uuid
from dataclasses import dataclass
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import atomic
from app.core.errors import InvalidRequest, NotFound
from app.db.repositories.tag_repository import TagRepository
from app.domains.content.entities import ContentKind, Book, Chapter, Page
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal
from app.domains.importer.bookstack import ImportedBook, ImportedPage, read_archive
from app.domains.tags.entities import Tag

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    book: Book
    chapters_created: int = 0
    pages_created: int = 0


class BookImportService:
    """Импорт книги BookStack одной транзакцией

    Права как у создания книги, главы и страницы; теги находятся по имени
    или создаются.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.content_service = ContentService(session)
        self.tag_repository = TagRepository(session)

    async def import_archive(
        self,
        raw: bytes,
        principal: Principal,
        shelf_id: Optional[uuid.UUID] = None,
        team_id: Optional[uuid.UUID] = None
    ) -> ImportResult:
        service = self.content_service
        for kind in (ContentKind.BOOK, ContentKind.CHAPTER, ContentKind.PAGE):
            service.resolver.require_create(principal, kind, team_id)
        if not raw:
            raise InvalidRequest("No file provided")
        if len(raw) > settings.import_max_bytes:
            raise InvalidRequest("File is too large")
        imported = read_archive(raw)

        if shelf_id is not None:
            shelf = await service.shelf_repository.get_by_id(shelf_id)
            if not shelf:
                raise NotFound("Shelf not found")
            await service.resolver.require_manage(principal, shelf)

        async with atomic(self.session):
            result = await self._create(imported, principal, shelf_id, team_id)
        logger.info(
            "Book %s imported by %s: %s chapters, %s pages",
            result.book.slug, principal.id, result.chapters_created, result.pages_created
        )
        return result

    async def _create(
        self,
        imported: ImportedBook,
        principal: Principal,
        shelf_id: Optional[uuid.UUID],
        team_id: Optional[uuid.UUID]
    ) -> ImportResult:
        service = self.content_service
        book = await service.book_repository.create(Book(
            id=uuid.uuid4(),
            name=imported.name,
            slug=await service.unique_slug(service.book_repository, imported.name, None),
            description=imported.description,
            team_id=team_id,
            created_by=principal.id,
            shelf_id=shelf_id
        ))
        result = ImportResult(book=book)
        await self._tag(imported.tags, ContentKind.BOOK, book.id)

        for chapter_index, imported_chapter in enumerate(imported.chapters):
            chapter = await service.chapter_repository.create(Chapter(
                id=uuid.uuid4(),
                name=imported_chapter.name,
                slug=await service.unique_slug(service.chapter_repository, imported_chapter.name, None),
                description=imported_chapter.description,
                team_id=team_id,
                created_by=principal.id,
                book_id=book.id,
                sort_order=chapter_index
            ))
            result.chapters_created += 1
            await self._tag(imported_chapter.tags, ContentKind.CHAPTER, chapter.id)
            result.pages_created += await self._pages(
                imported_chapter.pages, principal, book.id, chapter.id, team_id
            )

        result.pages_created += await self._pages(imported.pages, principal, book.id, None, team_id)
        return result

    async def _pages(
        self,
        pages: List[ImportedPage],
        principal: Principal,
        book_id: uuid.UUID,
        chapter_id: Optional[uuid.UUID],
        team_id: Optional[uuid.UUID]
    ) -> int:
        service = self.content_service
        for index, imported_page in enumerate(pages):
            page = await service.page_repository.create(Page(
                id=uuid.uuid4(),
                name=imported_page.name,
                slug=await service.unique_slug(service.page_repository, imported_page.name, None),
                team_id=team_id,
                created_by=principal.id,
                book_id=book_id,
                chapter_id=chapter_id,
                content=imported_page.content,
                html=imported_page.html,
                sort_order=index
            ))
            await self._tag(imported_page.tags, ContentKind.PAGE, page.id)
        return len(pages)

    async def _tag(self, names: List[str], kind: ContentKind, entity_id: uuid.UUID) -> None:
        for name in names:
            tag = await self.tag_repository.get_by_name(name)
            if tag is None:
                tag = Tag.create_tag(name)
                while await self.tag_repository.slug_exists(tag.slug):
                    tag = Tag.create_tag(name)
                tag = await self.tag_repository.create(tag)
            await self.tag_repository.attach(tag.id, kind, entity_id)
