from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.schemas import PageCreate, PageUpdate, PageMove, PageResponse
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal
from app.domains.ordering.schemas import SuccessResponse
from app.domains.revisions.schemas import RevisionResponse, RevisionListResponse
from app.domains.revisions.services import RevisionStore

router = APIRouter(prefix="/pages", tags=["pages"])


@router.post("", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
async def create_page(
    page_data: PageCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание страницы"""
    page = await ContentService(db).create_page(page_data, principal)
    return PageResponse.model_validate(page)


@router.get("/{slug}", response_model=PageResponse)
async def get_page(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Получение страницы по slug"""
    page = await ContentService(db).get_page(slug, principal)
    return PageResponse.model_validate(page)


@router.put("/{slug}", response_model=PageResponse)
async def update_page(
    slug: str,
    page_data: PageUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Правка страницы; предыдущее содержимое сохраняется ревизией"""
    page = await ContentService(db).update_page(slug, page_data, principal)
    return PageResponse.model_validate(page)


@router.post("/{slug}/move", response_model=PageResponse)
async def move_page(
    slug: str,
    move_data: PageMove,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Перенос страницы в другую главу или книгу"""
    page = await ContentService(db).move_page(slug, move_data, principal)
    return PageResponse.model_validate(page)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_page(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление страницы"""
    await ContentService(db).delete_page(slug, principal)


@router.get("/{slug}/revisions", response_model=RevisionListResponse)
async def list_revisions(
    slug: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Ревизии страницы от новых к старым"""
    revisions, total = await RevisionStore(db).page_revisions(
        slug, principal, limit=per_page, offset=(page - 1) * per_page
    )
    return RevisionListResponse(
        revisions=[RevisionResponse.model_validate(r) for r in revisions],
        total=total
    )


@router.post("/{slug}/revisions/{revision_id}/restore", response_model=SuccessResponse)
async def restore_revision(
    slug: str,
    revision_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Восстановление ревизии как новой правки"""
    await RevisionStore(db).restore_page_revision(slug, revision_id, principal)
    return SuccessResponse()
