import inspect
import logging
import uuid
from typing import Optional, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import atomic
from app.core.errors import DomainError, InvalidRequest, NotFound, UpstreamFailure
from app.domains.content.entities import ContentKind, Book, Chapter, Page
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal
from app.domains.summarizer.book_generator import generate_book_structure
from app.domains.summarizer.schemas import GeneratedBook, SummarizeRequest
from app.domains.summarizer.scraper import scrape_url
from app.domains.summarizer.summarizer import Summarizer

logger = logging.getLogger(__name__)


class SummarizerPipeline:
    """scrape -> summarize -> structure; без повторов, ничего не сохраняет

    Сбой любой стадии прерывает весь запуск с UpstreamFailure,
    внутренняя причина пишется только в лог.
    """

    def __init__(
        self,
        scrape: Optional[Callable] = None,
        summarize: Optional[Callable] = None,
        structure: Optional[Callable] = None
    ):
        self.scrape = scrape or scrape_url
        self.summarize = summarize
        self.structure = structure or generate_book_structure

    def _default_summarize(self) -> Callable:
        if not settings.openai_api_key:
            raise InvalidRequest("Summarizer is not configured")
        return Summarizer().summarize

    @staticmethod
    async def _stage(name: str, func: Callable, *args, **kwargs):
        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except DomainError:
            raise
        except Exception:
            logger.exception("Summarizer stage '%s' failed", name)
            raise UpstreamFailure(f"Summarization failed at the {name} stage")

    async def run(self, request: SummarizeRequest) -> GeneratedBook:
        summarize = self.summarize or self._default_summarize()
        url = str(request.url)

        scraped = await self._stage("scrape", self.scrape, url)
        summary = await self._stage(
            "summarize", summarize, scraped, language=request.language, book_name=request.book_name
        )
        book = await self._stage("structure", self.structure, summary)
        logger.info("Summarized %s into %s chapters", url, len(book.chapters))
        return book


class GeneratedBookService:
    """Сохранение сгенерированной книги одной транзакцией"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.content_service = ContentService(session)

    async def create_book(
        self,
        book: GeneratedBook,
        principal: Principal,
        shelf_id: Optional[uuid.UUID] = None,
        team_id: Optional[uuid.UUID] = None
    ) -> Book:
        """Книга, главы и страницы в исходном порядке"""
        service = self.content_service
        for kind in (ContentKind.BOOK, ContentKind.CHAPTER, ContentKind.PAGE):
            service.resolver.require_create(principal, kind, team_id)
        if shelf_id is not None:
            shelf = await service.shelf_repository.get_by_id(shelf_id)
            if not shelf:
                raise NotFound("Shelf not found")
            await service.resolver.require_manage(principal, shelf)

        async with atomic(self.session):
            created = await service.book_repository.create(Book(
                id=uuid.uuid4(),
                name=book.name,
                slug=await service.unique_slug(service.book_repository, book.name, None),
                description=book.description,
                team_id=team_id,
                created_by=principal.id,
                shelf_id=shelf_id
            ))
            for chapter_index, chapter in enumerate(book.chapters):
                created_chapter = await service.chapter_repository.create(Chapter(
                    id=uuid.uuid4(),
                    name=chapter.name,
                    slug=await service.unique_slug(service.chapter_repository, chapter.name, None),
                    team_id=team_id,
                    created_by=principal.id,
                    book_id=created.id,
                    sort_order=chapter_index
                ))
                for page_index, page in enumerate(chapter.pages):
                    await service.page_repository.create(Page(
                        id=uuid.uuid4(),
                        name=page.name,
                        slug=await service.unique_slug(service.page_repository, page.name, None),
                        team_id=team_id,
                        created_by=principal.id,
                        book_id=created.id,
                        chapter_id=created_chapter.id,
                        content=page.content,
                        html=page.html,
                        sort_order=page_index
                    ))
        logger.info("Generated book %s created by %s with %s chapters", created.slug, principal.id, len(book.chapters))
        return created
