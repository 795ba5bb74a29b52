import logging
import uuid
from typing import Optional, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import AccessDenied, InvalidRequest, NotFound
from app.db.repositories.content_repository import (
    ContentRepository, ShelfRepository, BookRepository, ChapterRepository, PageRepository
)
from app.domains.access.permissions import Action
from app.domains.access.policy import OwnershipResolver, can_view
from app.domains.content.entities import (
    ContentEntity, ContentKind, Shelf, Book, Chapter, Page, BookTree, ChapterTree,
    normalize_slug, generate_slug
)
from app.domains.content.schemas import (
    ShelfCreate, BookCreate, ChapterCreate, PageCreate,
    ShelfUpdate, BookUpdate, ChapterUpdate, PageUpdate, PageMove
)
from app.domains.identity.entities import Principal
from app.domains.ordering.services import ReorderEngine
from app.domains.revisions.services import RevisionStore

logger = logging.getLogger(__name__)


class ContentService:
    """Сервис для работы с полками, книгами, главами и страницами"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.shelf_repository = ShelfRepository(session)
        self.book_repository = BookRepository(session)
        self.chapter_repository = ChapterRepository(session)
        self.page_repository = PageRepository(session)
        self.resolver = OwnershipResolver(session)
        self.reorder_engine = ReorderEngine(session)
        self.revision_store = RevisionStore(session)

    # --- общие помощники ---

    async def unique_slug(self, repository: ContentRepository, name: str, explicit: Optional[str]) -> str:
        """Явный slug должен быть свободен; сгенерированный перевыбирается при коллизии"""
        if explicit is not None:
            slug = normalize_slug(explicit)
            if not slug:
                raise InvalidRequest("Invalid slug")
            if await repository.slug_exists(slug):
                raise InvalidRequest("Slug already in use")
            return slug

        slug = generate_slug(name)
        while await repository.slug_exists(slug):
            slug = generate_slug(name)
        return slug

    @staticmethod
    async def _by_slug(repository: ContentRepository, slug: str) -> ContentEntity:
        entity = await repository.get_by_slug(slug)
        if not entity:
            raise NotFound(f"{repository.entity.kind.value.capitalize()} not found")
        return entity

    @staticmethod
    async def _by_id(repository: ContentRepository, entity_id: uuid.UUID) -> ContentEntity:
        entity = await repository.get_by_id(entity_id)
        if not entity:
            raise NotFound(f"{repository.entity.kind.value.capitalize()} not found")
        return entity

    def repository_for(self, kind: ContentKind) -> ContentRepository:
        return {
            ContentKind.SHELF: self.shelf_repository,
            ContentKind.BOOK: self.book_repository,
            ContentKind.CHAPTER: self.chapter_repository,
            ContentKind.PAGE: self.page_repository,
        }[kind]

    async def _page_parent(
        self,
        book_id: Optional[uuid.UUID],
        chapter_id: Optional[uuid.UUID]
    ) -> Tuple[Optional[uuid.UUID], Optional[ContentEntity]]:
        """Книга и непосредственный родитель страницы (глава или книга)"""
        if chapter_id is not None:
            chapter = await self._by_id(self.chapter_repository, chapter_id)
            if book_id is not None and book_id != chapter.book_id:
                raise InvalidRequest("Chapter does not belong to the book")
            return chapter.book_id, chapter
        if book_id is not None:
            return book_id, await self._by_id(self.book_repository, book_id)
        return None, None

    # --- создание ---

    async def create_shelf(self, data: ShelfCreate, principal: Principal) -> Shelf:
        """Создание полки"""
        self.resolver.require_create(principal, ContentKind.SHELF, data.team_id)

        async with atomic(self.session):
            shelf = Shelf(
                id=uuid.uuid4(),
                name=data.name,
                slug=await self.unique_slug(self.shelf_repository, data.name, data.slug),
                description=data.description,
                team_id=data.team_id,
                created_by=principal.id
            )
            created = await self.shelf_repository.create(shelf)
        logger.info("Shelf %s created by %s", created.slug, principal.id)
        return created

    async def create_book(self, data: BookCreate, principal: Principal) -> Book:
        """Создание книги (опционально на полке)"""
        self.resolver.require_create(principal, ContentKind.BOOK, data.team_id)
        if data.shelf_id is not None:
            shelf = await self._by_id(self.shelf_repository, data.shelf_id)
            await self.resolver.require_manage(principal, shelf)

        async with atomic(self.session):
            book = Book(
                id=uuid.uuid4(),
                name=data.name,
                slug=await self.unique_slug(self.book_repository, data.name, data.slug),
                description=data.description,
                team_id=data.team_id,
                created_by=principal.id,
                shelf_id=data.shelf_id
            )
            created = await self.book_repository.create(book)
        logger.info("Book %s created by %s", created.slug, principal.id)
        return created

    async def create_chapter(self, data: ChapterCreate, principal: Principal) -> Chapter:
        """Создание главы в конце списка глав книги"""
        self.resolver.require_create(principal, ContentKind.CHAPTER, data.team_id)
        book = await self._by_id(self.book_repository, data.book_id)
        await self.resolver.require_manage(principal, book)

        async with atomic(self.session):
            chapter = Chapter(
                id=uuid.uuid4(),
                name=data.name,
                slug=await self.unique_slug(self.chapter_repository, data.name, data.slug),
                description=data.description,
                team_id=data.team_id,
                created_by=principal.id,
                book_id=book.id,
                sort_order=await self.chapter_repository.count_by_book(book.id)
            )
            created = await self.chapter_repository.create(chapter)
        logger.info("Chapter %s created in book %s by %s", created.slug, book.slug, principal.id)
        return created

    async def create_page(self, data: PageCreate, principal: Principal) -> Page:
        """Создание страницы в конце списка соседей; ревизия не пишется"""
        self.resolver.require_create(principal, ContentKind.PAGE, data.team_id)
        book_id, parent = await self._page_parent(data.book_id, data.chapter_id)
        if parent is not None:
            await self.resolver.require_manage(principal, parent)

        async with atomic(self.session):
            page = Page(
                id=uuid.uuid4(),
                name=data.name,
                slug=await self.unique_slug(self.page_repository, data.name, data.slug),
                description=data.description,
                team_id=data.team_id,
                created_by=principal.id,
                book_id=book_id,
                chapter_id=data.chapter_id,
                content=data.content,
                html=data.html,
                draft=data.draft,
                sort_order=await self.page_repository.count_siblings(book_id, data.chapter_id, principal.id)
            )
            created = await self.page_repository.create(page)
        logger.info("Page %s created by %s", created.slug, principal.id)
        return created

    # --- чтение ---

    async def get_shelf(self, slug: str, principal: Principal) -> Shelf:
        shelf = await self._by_slug(self.shelf_repository, slug)
        await self.resolver.require_read(principal, shelf)
        return shelf

    async def get_book(self, slug: str, principal: Principal) -> Book:
        book = await self._by_slug(self.book_repository, slug)
        await self.resolver.require_read(principal, book)
        return book

    async def get_chapter(self, slug: str, principal: Principal) -> Chapter:
        chapter = await self._by_slug(self.chapter_repository, slug)
        await self.resolver.require_read(principal, chapter)
        return chapter

    async def get_page(self, slug: str, principal: Principal) -> Page:
        page = await self._by_slug(self.page_repository, slug)
        await self.resolver.require_read(principal, page)
        return page

    async def list_shelves(self, principal: Principal, limit: int = 100, offset: int = 0) -> List[Shelf]:
        """Полки, доступные участнику для чтения"""
        return await self.shelf_repository.list_readable(
            principal.id, principal.team_ids, principal.is_admin, limit, offset
        )

    async def list_books(self, principal: Principal, limit: int = 100, offset: int = 0) -> List[Book]:
        """Книги, доступные участнику для чтения"""
        return await self.book_repository.list_readable(
            principal.id, principal.team_ids, principal.is_admin, limit, offset
        )

    async def chapter_tree(self, chapter: Chapter) -> ChapterTree:
        pages = await self.page_repository.list_siblings(chapter.book_id, chapter.id)
        return ChapterTree(chapter=chapter, pages=pages)

    async def book_tree(self, book: Book) -> BookTree:
        """Книга с упорядоченными главами, их страницами и прямыми страницами"""
        chapters = await self.chapter_repository.list_by_book(book.id)
        return BookTree(
            book=book,
            chapters=[await self.chapter_tree(chapter) for chapter in chapters],
            direct_pages=await self.page_repository.list_siblings(book.id, None)
        )

    async def read_book(self, slug: str, principal: Optional[Principal] = None) -> BookTree:
        """Книга для чтения: без аутентификации и без проверки владения"""
        book = await self._by_slug(self.book_repository, slug)
        if not can_view(principal, book):
            raise AccessDenied()
        return await self.book_tree(book)

    async def read_shelf(self, slug: str, principal: Optional[Principal] = None) -> Tuple[Shelf, List[Book]]:
        """Полка для чтения со списком книг"""
        shelf = await self._by_slug(self.shelf_repository, slug)
        if not can_view(principal, shelf):
            raise AccessDenied()
        return shelf, await self.book_repository.list_by_shelf(shelf.id)

    # --- изменение ---

    async def update_shelf(self, slug: str, data: ShelfUpdate, principal: Principal) -> Shelf:
        """Обновление полки"""
        shelf = await self._by_slug(self.shelf_repository, slug)
        await self.resolver.require_manage(principal, shelf)

        async with atomic(self.session):
            updated = await self.shelf_repository.update(shelf.id, **data.model_dump(exclude_none=True))
        logger.info("Shelf %s updated by %s", shelf.slug, principal.id)
        return updated

    async def update_book(self, slug: str, data: BookUpdate, principal: Principal) -> Book:
        """Обновление книги, в том числе перенос на другую полку"""
        book = await self._by_slug(self.book_repository, slug)
        await self.resolver.require_manage(principal, book)
        values = data.model_dump(exclude_none=True)
        if "shelf_id" in values:
            shelf = await self._by_id(self.shelf_repository, values["shelf_id"])
            await self.resolver.require_manage(principal, shelf)
        elif "shelf_id" in data.model_fields_set:
            # Явный null снимает книгу с полки
            values["shelf_id"] = None

        async with atomic(self.session):
            updated = await self.book_repository.update(book.id, **values)
        logger.info("Book %s updated by %s", book.slug, principal.id)
        return updated

    async def update_chapter(self, slug: str, data: ChapterUpdate, principal: Principal) -> Chapter:
        """Обновление главы"""
        chapter = await self._by_slug(self.chapter_repository, slug)
        await self.resolver.require_manage(principal, chapter)

        async with atomic(self.session):
            updated = await self.chapter_repository.update(chapter.id, **data.model_dump(exclude_none=True))
        logger.info("Chapter %s updated by %s", chapter.slug, principal.id)
        return updated

    async def update_page(self, slug: str, data: PageUpdate, principal: Principal) -> Page:
        """Правка страницы; изменение содержимого проходит через историю ревизий"""
        page = await self._by_slug(self.page_repository, slug)
        await self.resolver.require_manage(principal, page)
        values = data.model_dump(exclude_unset=True)
        meta = {k: values[k] for k in ("name", "draft") if values.get(k) is not None}

        async with atomic(self.session):
            if "content" in values or "html" in values:
                revision = await self.revision_store.apply_edit(
                    page.id,
                    values.get("content", page.content),
                    values.get("html", page.html),
                    principal.id,
                    **meta
                )
                logger.info("Page %s edited by %s, revision %s", page.slug, principal.id, revision.revision_number)
            else:
                await self.page_repository.update(page.id, **meta)
        return await self.page_repository.get_by_id(page.id)

    async def move_page(self, slug: str, data: PageMove, principal: Principal) -> Page:
        """Перенос страницы; порядок пересчитывается в старом и новом списке соседей"""
        page = await self._by_slug(self.page_repository, slug)
        await self.resolver.require_manage(principal, page)
        book_id, parent = await self._page_parent(data.book_id, data.chapter_id)
        await self.resolver.require_manage(principal, parent)

        if (book_id, data.chapter_id) == (page.book_id, page.chapter_id):
            return page

        async with atomic(self.session):
            await self.page_repository.update(
                page.id,
                book_id=book_id,
                chapter_id=data.chapter_id,
                sort_order=await self.page_repository.count_siblings(book_id, data.chapter_id, page.created_by)
            )
            await self.reorder_engine.resequence_pages(page.book_id, page.chapter_id, page.created_by)
            await self.reorder_engine.resequence_pages(book_id, data.chapter_id, page.created_by)
        logger.info(
            "Page %s moved by %s: book %s chapter %s -> book %s chapter %s",
            page.slug, principal.id, page.book_id, page.chapter_id, book_id, data.chapter_id
        )
        return await self.page_repository.get_by_id(page.id)

    # --- удаление ---

    async def delete_page(self, slug: str, principal: Principal) -> None:
        """Удаление страницы вместе с ревизиями"""
        page = await self._by_slug(self.page_repository, slug)
        await self.resolver.require_manage(principal, page, Action.DELETE)

        async with atomic(self.session):
            await self.page_repository.delete(page.id)
            await self.reorder_engine.resequence_pages(page.book_id, page.chapter_id, page.created_by)
        logger.info("Page %s deleted by %s", page.slug, principal.id)

    async def delete_chapter(self, slug: str, principal: Principal) -> None:
        """Удаление главы; ее страницы становятся прямыми страницами книги"""
        chapter = await self._by_slug(self.chapter_repository, slug)
        await self.resolver.require_manage(principal, chapter, Action.DELETE)

        async with atomic(self.session):
            pages = await self.page_repository.list_siblings(chapter.book_id, chapter.id)
            offset = await self.page_repository.count_siblings(chapter.book_id, None)
            for index, page in enumerate(pages):
                await self.page_repository.update(page.id, chapter_id=None, sort_order=offset + index)
            await self.chapter_repository.delete(chapter.id)
            await self.reorder_engine.resequence_chapters(chapter.book_id)
        logger.info("Chapter %s deleted by %s, %s pages detached", chapter.slug, principal.id, len(pages))

    async def delete_book(self, slug: str, principal: Principal) -> None:
        """Удаление книги с главами, страницами и ревизиями"""
        book = await self._by_slug(self.book_repository, slug)
        await self.resolver.require_manage(principal, book, Action.DELETE)

        async with atomic(self.session):
            await self.book_repository.delete(book.id)
        logger.info("Book %s deleted by %s", book.slug, principal.id)

    async def delete_shelf(self, slug: str, principal: Principal) -> None:
        """Удаление полки; книги остаются без полки"""
        shelf = await self._by_slug(self.shelf_repository, slug)
        await self.resolver.require_manage(principal, shelf, Action.DELETE)

        async with atomic(self.session):
            await self.book_repository.detach_from_shelf(shelf.id)
            await self.shelf_repository.delete(shelf.id)
        logger.info("Shelf %s deleted by %s", shelf.slug, principal.id)
