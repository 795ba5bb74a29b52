from dataclasses import asdict, fields
from datetime import datetime
from typing import Optional, List, Iterable, Sequence, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, and_, or_
from sqlalchemy.exc import IntegrityError
import uuid

from app.core.errors import InvalidRequest
from app.db.base import utc_now
from app.db.models.content import (
    Shelf as ShelfModel,
    Book as BookModel,
    Chapter as ChapterModel,
    Page as PageModel
)
from app.domains.content.entities import ContentEntity, Shelf, Book, Chapter, Page


class ContentRepository:
    """Базовый репозиторий для полок, книг, глав и страниц"""

    model: Type = None
    entity: Type[ContentEntity] = None
    search_columns: Sequence[str] = ("name", "description")

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: ContentEntity) -> ContentEntity:
        """Создание новой сущности"""
        values = {k: v for k, v in asdict(entity).items() if v is not None}
        db_obj = self.model(**values)

        self.session.add(db_obj)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest(f"{self.entity.kind.value.capitalize()} slug already in use")
        return self._to_domain(db_obj)

    async def get_by_id(self, entity_id: uuid.UUID) -> Optional[ContentEntity]:
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        db_obj = result.scalar_one_or_none()
        return self._to_domain(db_obj) if db_obj else None

    async def get_by_slug(self, slug: str) -> Optional[ContentEntity]:
        """Получение сущности по slug (slug уникален в пределах таблицы)"""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.slug == slug)
            .execution_options(populate_existing=True)
        )
        db_obj = result.scalar_one_or_none()
        return self._to_domain(db_obj) if db_obj else None

    async def get_many(self, ids: Sequence[uuid.UUID]) -> List[ContentEntity]:
        if not ids:
            return []
        result = await self.session.execute(
            select(self.model).where(self.model.id.in_(list(ids)))
        )
        return [self._to_domain(obj) for obj in result.scalars().all()]

    async def search(self, phrase: str, terms: Sequence[str], limit: int = 200) -> List[ContentEntity]:
        """Совпадение всей фразы или каждого слова хотя бы в одном поле поиска"""
        columns = [getattr(self.model, name) for name in self.search_columns]
        phrase_match = or_(*[c.icontains(phrase, autoescape=True) for c in columns])
        terms_match = and_(*[or_(*[c.icontains(t, autoescape=True) for c in columns]) for t in terms])
        result = await self.session.execute(
            select(self.model)
            .where(or_(phrase_match, terms_match))
            .order_by(self.model.updated_at.desc())
            .limit(limit)
        )
        return [self._to_domain(obj) for obj in result.scalars().all()]

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(func.count(self.model.id)).where(self.model.slug == slug)
        )
        return result.scalar() > 0

    async def list_readable(
        self,
        user_id: uuid.UUID,
        team_ids: Iterable[uuid.UUID],
        include_all: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> List[ContentEntity]:
        """Командные сущности пользователя и его личные; include_all - без фильтра"""
        stmt = select(self.model)
        if not include_all:
            stmt = stmt.where(
                or_(
                    self.model.team_id.in_(list(team_ids)),
                    and_(self.model.team_id.is_(None), self.model.created_by == user_id)
                )
            )
        result = await self.session.execute(self._ordered(stmt).offset(offset).limit(limit))
        return [self._to_domain(obj) for obj in result.scalars().all()]

    async def update(self, entity_id: uuid.UUID, **values) -> Optional[ContentEntity]:
        """Обновление полей; updated_at обновляется всегда"""
        values.setdefault("updated_at", utc_now())
        await self.session.execute(
            update(self.model).where(self.model.id == entity_id).values(**values)
        )
        await self.session.flush()
        return await self.get_by_id(entity_id)

    async def delete(self, entity_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(self.model).where(self.model.id == entity_id)
        )
        return result.rowcount > 0

    async def set_sort_orders(self, ordered_ids: Sequence[uuid.UUID], updated_at: datetime) -> int:
        """sort_order = позиция в списке; возвращает число обновленных строк"""
        updated = 0
        for index, entity_id in enumerate(ordered_ids):
            result = await self.session.execute(
                update(self.model)
                .where(self.model.id == entity_id)
                .values(sort_order=index, updated_at=updated_at)
            )
            updated += result.rowcount
        await self.session.flush()
        return updated

    def _ordered(self, stmt):
        # При равном sort_order порядок определяется временем вставки
        return stmt.order_by(self.model.sort_order.asc(), self.model.created_at.asc(), self.model.id.asc())

    def _to_domain(self, db_obj) -> ContentEntity:
        """Преобразование модели БД в доменную сущность"""
        return self.entity(**{f.name: getattr(db_obj, f.name) for f in fields(self.entity)})


class ShelfRepository(ContentRepository):
    model = ShelfModel
    entity = Shelf


class BookRepository(ContentRepository):
    model = BookModel
    entity = Book

    async def detach_from_shelf(self, shelf_id: uuid.UUID) -> int:
        """Книги удаляемой полки остаются без полки"""
        result = await self.session.execute(
            update(BookModel)
            .where(BookModel.shelf_id == shelf_id)
            .values(shelf_id=None, updated_at=utc_now())
        )
        return result.rowcount

    async def list_by_shelf(self, shelf_id: uuid.UUID) -> List[Book]:
        result = await self.session.execute(
            self._ordered(select(BookModel).where(BookModel.shelf_id == shelf_id))
        )
        return [self._to_domain(obj) for obj in result.scalars().all()]


class ChapterRepository(ContentRepository):
    model = ChapterModel
    entity = Chapter

    async def list_by_book(self, book_id: uuid.UUID) -> List[Chapter]:
        """Главы книги в порядке sort_order"""
        result = await self.session.execute(
            self._ordered(select(ChapterModel).where(ChapterModel.book_id == book_id))
        )
        return [self._to_domain(obj) for obj in result.scalars().all()]

    async def count_by_book(self, book_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(ChapterModel.id)).where(ChapterModel.book_id == book_id)
        )
        return result.scalar()


class PageRepository(ContentRepository):
    model = PageModel
    entity = Page
    search_columns = ("name", "content", "html")

    def _sibling_filter(
        self,
        book_id: Optional[uuid.UUID],
        chapter_id: Optional[uuid.UUID],
        created_by: Optional[uuid.UUID] = None
    ):
        # Соседи страницы: страницы той же главы, прямые страницы книги,
        # либо личные страницы без книги одного автора
        if chapter_id is not None:
            return PageModel.chapter_id == chapter_id
        if book_id is not None:
            return and_(PageModel.book_id == book_id, PageModel.chapter_id.is_(None))
        return and_(
            PageModel.book_id.is_(None),
            PageModel.chapter_id.is_(None),
            PageModel.created_by == created_by
        )

    async def list_siblings(
        self,
        book_id: Optional[uuid.UUID],
        chapter_id: Optional[uuid.UUID],
        created_by: Optional[uuid.UUID] = None
    ) -> List[Page]:
        result = await self.session.execute(
            self._ordered(select(PageModel).where(self._sibling_filter(book_id, chapter_id, created_by)))
        )
        return [self._to_domain(obj) for obj in result.scalars().all()]

    async def count_siblings(
        self,
        book_id: Optional[uuid.UUID],
        chapter_id: Optional[uuid.UUID],
        created_by: Optional[uuid.UUID] = None
    ) -> int:
        result = await self.session.execute(
            select(func.count(PageModel.id)).where(self._sibling_filter(book_id, chapter_id, created_by))
        )
        return result.scalar()

    async def get_by_share_token(self, token: str) -> Optional[Page]:
        result = await self.session.execute(
            select(PageModel)
            .where(PageModel.share_token == token)
            .execution_options(populate_existing=True)
        )
        db_page = result.scalar_one_or_none()
        return self._to_domain(db_page) if db_page else None

    async def lock_for_update(self, page_id: uuid.UUID) -> Optional[Page]:
        """Чтение страницы с блокировкой строки до конца транзакции"""
        result = await self.session.execute(
            select(PageModel)
            .where(PageModel.id == page_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_page = result.scalar_one_or_none()
        return self._to_domain(db_page) if db_page else None
