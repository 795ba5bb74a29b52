from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.domains.export.entities import ExportKind, ExportFormat
from app.domains.export.renderer import PdfRenderer
from app.domains.export.services import ExportService

router = APIRouter(prefix="/export", tags=["export"])


def get_pdf_renderer() -> PdfRenderer:
    return PdfRenderer(settings.export_timeout_seconds)


@router.get("/{kind}/{slug}")
async def export_content(
    kind: ExportKind,
    slug: str,
    export_format: ExportFormat = Query(ExportFormat.PDF, alias="format"),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
    db: AsyncSession = Depends(get_db)
):
    """Экспорт страницы, главы или книги (по умолчанию PDF)"""
    exported = await ExportService(db, renderer=renderer).export(kind, slug, export_format)
    return Response(
        content=exported.body,
        media_type=exported.media_type,
        headers={"Content-Disposition": exported.content_disposition}
    )
