from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.entities import BookTree
from app.domains.content.schemas import (
    BookCreate, BookUpdate, BookResponse, BookReadResponse, ReadChapter, ReadPage
)
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal

router = APIRouter(prefix="/books", tags=["books"])


def _read_response(tree: BookTree) -> BookReadResponse:
    return BookReadResponse(
        id=tree.book.id,
        name=tree.book.name,
        slug=tree.book.slug,
        description=tree.book.description,
        chapters=[
            ReadChapter(
                id=c.chapter.id,
                name=c.chapter.name,
                slug=c.chapter.slug,
                pages=[ReadPage.model_validate(p) for p in c.pages]
            )
            for c in tree.chapters
        ],
        direct_pages=[ReadPage.model_validate(p) for p in tree.direct_pages]
    )


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    book_data: BookCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание книги"""
    book = await ContentService(db).create_book(book_data, principal)
    return BookResponse.model_validate(book)


@router.get("", response_model=List[BookResponse])
async def list_books(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Книги, доступные текущему пользователю"""
    books = await ContentService(db).list_books(principal, limit=per_page, offset=(page - 1) * per_page)
    return [BookResponse.model_validate(b) for b in books]


@router.get("/{slug}", response_model=BookResponse)
async def get_book(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Получение книги по slug"""
    book = await ContentService(db).get_book(slug, principal)
    return BookResponse.model_validate(book)


@router.get("/{slug}/read", response_model=BookReadResponse)
async def read_book(
    slug: str,
    db: AsyncSession = Depends(get_db)
):
    """Книга для чтения (без аутентификации и проверки владения)"""
    tree = await ContentService(db).read_book(slug)
    return _read_response(tree)


@router.patch("/{slug}", response_model=BookResponse)
async def update_book(
    slug: str,
    book_data: BookUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Обновление книги"""
    book = await ContentService(db).update_book(slug, book_data, principal)
    return BookResponse.model_validate(book)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление книги со всем содержимым"""
    await ContentService(db).delete_book(slug, principal)
