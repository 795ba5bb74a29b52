import logging
import secrets
import string
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import NotFound
from app.db.repositories.content_repository import BookRepository, PageRepository
from app.db.repositories.user_repository import UserRepository
from app.domains.access.policy import OwnershipResolver
from app.domains.content.entities import Book, Page
from app.domains.identity.entities import Principal, User

logger = logging.getLogger(__name__)

SHARE_TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"
SHARE_TOKEN_LENGTH = 16


def generate_share_token() -> str:
    return "".join(secrets.choice(SHARE_TOKEN_ALPHABET) for _ in range(SHARE_TOKEN_LENGTH))


def share_url(page: Page) -> Optional[str]:
    """Ссылка есть только у публичной страницы с токеном"""
    if page.is_public and page.share_token:
        return f"/share/{page.share_token}"
    return None


class ShareService:
    """Публичные ссылки на страницы

    Публичная страница доступна по токену без аутентификации. Выключение
    доступа токен не стирает: повторное включение возвращает ту же ссылку.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.page_repository = PageRepository(session)
        self.book_repository = BookRepository(session)
        self.user_repository = UserRepository(session)
        self.resolver = OwnershipResolver(session)

    async def _page(self, slug: str) -> Page:
        page = await self.page_repository.get_by_slug(slug)
        if not page:
            raise NotFound("Page not found")
        return page

    async def share_info(self, slug: str, principal: Principal) -> Page:
        page = await self._page(slug)
        await self.resolver.require_read(principal, page)
        return page

    async def toggle_public(self, slug: str, principal: Principal) -> Page:
        """Включение или выключение публичного доступа"""
        page = await self._page(slug)
        await self.resolver.require_manage(principal, page)

        is_public = not page.is_public
        token = page.share_token
        if is_public and not token:
            token = await self._unused_token()

        async with atomic(self.session):
            updated = await self.page_repository.update(page.id, is_public=is_public, share_token=token)
        logger.info("Page %s public=%s set by %s", page.slug, is_public, principal.id)
        return updated

    async def regenerate_token(self, slug: str, principal: Principal) -> Page:
        """Новый токен; старая ссылка перестает работать"""
        page = await self._page(slug)
        await self.resolver.require_manage(principal, page)

        async with atomic(self.session):
            updated = await self.page_repository.update(page.id, share_token=await self._unused_token())
        logger.info("Share token of page %s regenerated by %s", page.slug, principal.id)
        return updated

    async def public_page(self, token: str) -> Tuple[Page, Optional[Book], Optional[User]]:
        """Страница по токену; непубличная неотличима от несуществующей"""
        page = await self.page_repository.get_by_share_token(token)
        if not page or not page.is_public:
            raise NotFound("Page not found")
        book = await self.book_repository.get_by_id(page.book_id) if page.book_id else None
        author = await self.user_repository.get_by_id(page.created_by) if page.created_by else None
        return page, book, author

    async def _unused_token(self) -> str:
        token = generate_share_token()
        while await self.page_repository.get_by_share_token(token):
            token = generate_share_token()
        return token
