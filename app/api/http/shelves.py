from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.schemas import (
    ShelfCreate, ShelfUpdate, ShelfResponse, ShelfReadResponse, ReadBook
)
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal

router = APIRouter(prefix="/shelves", tags=["shelves"])


@router.post("", response_model=ShelfResponse, status_code=status.HTTP_201_CREATED)
async def create_shelf(
    shelf_data: ShelfCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание полки"""
    shelf = await ContentService(db).create_shelf(shelf_data, principal)
    return ShelfResponse.model_validate(shelf)


@router.get("", response_model=List[ShelfResponse])
async def list_shelves(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Полки, доступные текущему пользователю"""
    shelves = await ContentService(db).list_shelves(principal, limit=per_page, offset=(page - 1) * per_page)
    return [ShelfResponse.model_validate(s) for s in shelves]


@router.get("/{slug}", response_model=ShelfResponse)
async def get_shelf(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Получение полки по slug"""
    shelf = await ContentService(db).get_shelf(slug, principal)
    return ShelfResponse.model_validate(shelf)


@router.get("/{slug}/read", response_model=ShelfReadResponse)
async def read_shelf(
    slug: str,
    db: AsyncSession = Depends(get_db)
):
    """Полка для чтения (без аутентификации)"""
    shelf, books = await ContentService(db).read_shelf(slug)
    return ShelfReadResponse(
        id=shelf.id,
        name=shelf.name,
        slug=shelf.slug,
        description=shelf.description,
        books=[ReadBook.model_validate(b) for b in books]
    )


@router.patch("/{slug}", response_model=ShelfResponse)
async def update_shelf(
    slug: str,
    shelf_data: ShelfUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Обновление полки"""
    shelf = await ContentService(db).update_shelf(slug, shelf_data, principal)
    return ShelfResponse.model_validate(shelf)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shelf(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление полки"""
    await ContentService(db).delete_shelf(slug, principal)
