from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.identity.entities import Principal
from app.domains.importer.schemas import ImportResponse, ImportedBookSummary
from app.domains.importer.services import BookImportService

router = APIRouter(prefix="/import", tags=["import"])


@router.post("", response_model=ImportResponse)
async def import_book(
    file: UploadFile = File(...),
    shelf_id: Optional[uuid.UUID] = Form(None),
    team_id: Optional[uuid.UUID] = Form(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Импорт книги из ZIP-экспорта BookStack"""
    raw = await file.read()
    result = await BookImportService(db).import_archive(raw, principal, shelf_id=shelf_id, team_id=team_id)
    return ImportResponse(
        message=f'Book "{result.book.name}" imported successfully',
        book=ImportedBookSummary(
            book_id=result.book.id,
            book_name=result.book.name,
            book_slug=result.book.slug,
            chapters_created=result.chapters_created,
            pages_created=result.pages_created
        )
    )
