from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.schemas import ChapterCreate, ChapterUpdate, ChapterResponse
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal

router = APIRouter(prefix="/chapters", tags=["chapters"])


@router.post("", response_model=ChapterResponse, status_code=status.HTTP_201_CREATED)
async def create_chapter(
    chapter_data: ChapterCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание главы"""
    chapter = await ContentService(db).create_chapter(chapter_data, principal)
    return ChapterResponse.model_validate(chapter)


@router.get("/{slug}", response_model=ChapterResponse)
async def get_chapter(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Получение главы по slug"""
    chapter = await ContentService(db).get_chapter(slug, principal)
    return ChapterResponse.model_validate(chapter)


@router.patch("/{slug}", response_model=ChapterResponse)
async def update_chapter(
    slug: str,
    chapter_data: ChapterUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Обновление главы"""
    chapter = await ContentService(db).update_chapter(slug, chapter_data, principal)
    return ChapterResponse.model_validate(chapter)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chapter(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление главы"""
    await ContentService(db).delete_chapter(slug, principal)
