import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AccessDenied, NotFound, UpstreamFailure
from app.domains.access.policy import can_view
from app.domains.content.entities import ContentEntity
from app.domains.content.services import ContentService
from app.domains.export import markdown, pdf
from app.domains.export.entities import ExportKind, ExportFormat, ExportFile, export_filename
from app.domains.export.renderer import PdfRenderer, RenderError
from app.domains.identity.entities import Principal

logger = logging.getLogger(__name__)


class ExportService:
    """Экспорт страницы, главы или книги в PDF или Markdown

    Экспорт открыт без аутентификации, как и витрина чтения.
    """

    def __init__(
        self,
        session: AsyncSession,
        timeout: Optional[float] = None,
        renderer: Optional[PdfRenderer] = None
    ):
        self.content_service = ContentService(session)
        if renderer is None:
            renderer = PdfRenderer(timeout if timeout is not None else settings.export_timeout_seconds)
        self.renderer = renderer

    async def _entity(self, kind: ExportKind, slug: str) -> ContentEntity:
        repository = {
            ExportKind.PAGE: self.content_service.page_repository,
            ExportKind.CHAPTER: self.content_service.chapter_repository,
            ExportKind.BOOK: self.content_service.book_repository,
        }[kind]
        entity = await repository.get_by_slug(slug)
        if not entity:
            raise NotFound(f"{kind.value.capitalize()} not found")
        return entity

    async def export(
        self,
        kind: ExportKind,
        slug: str,
        export_format: ExportFormat = ExportFormat.PDF,
        principal: Optional[Principal] = None
    ) -> ExportFile:
        """Экспорт сущности по slug"""
        entity = await self._entity(kind, slug)
        if not can_view(principal, entity):
            raise AccessDenied()

        if kind == ExportKind.PAGE:
            source = entity
            to_markdown, to_document = markdown.page_markdown, pdf.page_document
        elif kind == ExportKind.CHAPTER:
            source = await self.content_service.chapter_tree(entity)
            to_markdown, to_document = markdown.chapter_markdown, pdf.chapter_document
        else:
            source = await self.content_service.book_tree(entity)
            to_markdown, to_document = markdown.book_markdown, pdf.book_document

        filename = export_filename(entity.name, export_format)
        if export_format == ExportFormat.MARKDOWN:
            body = to_markdown(source).encode("utf-8")
        else:
            body = await self.render_pdf(to_document(source), entity)

        logger.info("Exported %s %s as %s (%s bytes)", kind.value, slug, export_format.value, len(body))
        return ExportFile(filename=filename, media_type=export_format.media_type, body=body)

    async def render_pdf(self, document: pdf.PdfDocument, entity: ContentEntity) -> bytes:
        """Рендеринг в отдельном процессе с таймаутом"""
        try:
            return await self.renderer.render(document)
        except RenderError as exc:
            logger.error("PDF export of %s %s failed: %s", entity.kind.value, entity.slug, exc)
            raise UpstreamFailure("Failed to generate PDF")
