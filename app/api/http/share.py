from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.entities import Page
from app.domains.identity.entities import Principal
from app.domains.sharing.schemas import ShareInfoResponse, SharedAuthor, SharedPageResponse
from app.domains.sharing.services import ShareService, share_url

router = APIRouter(tags=["share"])


def _share_info(page: Page) -> ShareInfoResponse:
    return ShareInfoResponse(is_public=page.is_public, share_token=page.share_token, share_url=share_url(page))


@router.get("/pages/{slug}/share", response_model=ShareInfoResponse)
async def share_info(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Состояние публичной ссылки"""
    return _share_info(await ShareService(db).share_info(slug, principal))


@router.post("/pages/{slug}/share", response_model=ShareInfoResponse)
async def toggle_share(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Переключение публичного доступа"""
    return _share_info(await ShareService(db).toggle_public(slug, principal))


@router.post("/pages/{slug}/share/regenerate", response_model=ShareInfoResponse)
async def regenerate_share_token(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Перевыпуск токена публичной ссылки"""
    return _share_info(await ShareService(db).regenerate_token(slug, principal))


@router.get("/share/{token}", response_model=SharedPageResponse)
async def shared_page(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Публичная страница (без аутентификации)"""
    page, book, author = await ShareService(db).public_page(token)
    return SharedPageResponse(
        name=page.name,
        html=page.html,
        content=page.content,
        book_name=book.name if book else None,
        author=SharedAuthor(id=author.id, name=author.name, image=author.image) if author else None,
        updated_at=page.updated_at
    )
