from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.identity.entities import Principal
from app.domains.summarizer.book_generator import book_stats
from app.domains.summarizer.schemas import (
    SummarizeRequest, SummarizeResponse,
    CreateGeneratedBookRequest, CreateGeneratedBookResponse
)
from app.domains.summarizer.services import SummarizerPipeline, GeneratedBookService

router = APIRouter(prefix="/plugins/summarize", tags=["summarizer"])


def get_summarizer_pipeline() -> SummarizerPipeline:
    return SummarizerPipeline()


@router.post("", response_model=SummarizeResponse)
async def summarize(
    request_data: SummarizeRequest,
    principal: Principal = Depends(get_current_principal),
    pipeline: SummarizerPipeline = Depends(get_summarizer_pipeline)
):
    """Генерация книги из документации по URL (без сохранения)"""
    book = await pipeline.run(request_data)
    return SummarizeResponse(**book.model_dump(), stats=book_stats(book))


@router.post("/create", response_model=CreateGeneratedBookResponse)
async def create_generated_book(
    request_data: CreateGeneratedBookRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Сохранение сгенерированной книги"""
    book = await GeneratedBookService(db).create_book(
        request_data.book, principal, shelf_id=request_data.shelf_id, team_id=request_data.team_id
    )
    return CreateGeneratedBookResponse(slug=book.slug, id=book.id)
