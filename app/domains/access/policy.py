"""Проверки доступа к контенту и командам

Три независимые способности:

* can_view   - витрина чтения и экспорт, доступна всем без проверки владения;
* can_read   - владение по цепочке "сущность -> родительская книга", затем глобальный admin;
* can_manage - can_read плюс разрешение глобальной роли на изменение.

Управление составом команды (can_manage_team) проверяется только по роли
внутри команды, глобальный admin здесь привилегий не имеет.
"""
import logging
import uuid
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccessDenied
from app.db.repositories.content_repository import BookRepository, ChapterRepository
from app.domains.access.permissions import Action, permission, has_permission
from app.domains.content.entities import ContentEntity, ContentKind, Page
from app.domains.identity.entities import Principal

logger = logging.getLogger(__name__)


def owns(principal: Principal, entity: ContentEntity) -> bool:
    """Одно звено цепочки: командная сущность или личная сущность автора"""
    if entity.team_id is not None:
        return entity.team_id in principal.team_roles
    return entity.created_by is not None and entity.created_by == principal.id


def chain_allows(principal: Optional[Principal], chain: List[ContentEntity]) -> bool:
    if principal is None:
        return False
    for link in chain:
        if owns(principal, link):
            return True
    return principal.is_admin


def can_view(principal: Optional[Principal], entity: ContentEntity) -> bool:
    return True


def can_manage_team(principal: Optional[Principal], team_id: uuid.UUID) -> bool:
    if principal is None:
        return False
    role = principal.role_in(team_id)
    return role is not None and role.can_manage


class OwnershipResolver:
    """Разрешение прав по фиксированной цепочке владения"""

    def __init__(self, session: AsyncSession):
        self.book_repository = BookRepository(session)
        self.chapter_repository = ChapterRepository(session)

    async def chain(self, entity: ContentEntity) -> List[ContentEntity]:
        """Цепочка владения: страница/глава -> книга; полка и книга - только сама сущность"""
        if entity.kind not in (ContentKind.PAGE, ContentKind.CHAPTER):
            return [entity]

        book_id = entity.book_id
        if book_id is None and isinstance(entity, Page) and entity.chapter_id is not None:
            chapter = await self.chapter_repository.get_by_id(entity.chapter_id)
            book_id = chapter.book_id if chapter else None

        book = await self.book_repository.get_by_id(book_id) if book_id else None
        return [entity, book] if book else [entity]

    async def can_read(self, principal: Optional[Principal], entity: ContentEntity) -> bool:
        if principal is None:
            return False
        return chain_allows(principal, await self.chain(entity))

    async def can_manage(
        self,
        principal: Optional[Principal],
        entity: ContentEntity,
        action: Action = Action.EDIT
    ) -> bool:
        if not await self.can_read(principal, entity):
            return False
        return has_permission(principal.role, permission(entity.kind, action))

    async def require_read(self, principal: Principal, entity: ContentEntity) -> None:
        if not await self.can_read(principal, entity):
            logger.debug("Read denied: principal=%s %s=%s", principal.id, entity.kind.value, entity.id)
            raise AccessDenied()

    async def require_manage(
        self,
        principal: Principal,
        entity: ContentEntity,
        action: Action = Action.EDIT
    ) -> None:
        if not await self.can_manage(principal, entity, action):
            logger.debug(
                "%s denied: principal=%s %s=%s",
                action.value.capitalize(), principal.id, entity.kind.value, entity.id
            )
            raise AccessDenied()

    @staticmethod
    def require_create(principal: Principal, kind: ContentKind, team_id: Optional[uuid.UUID]) -> None:
        """Создание: разрешение роли и членство в указанной команде"""
        if not has_permission(principal.role, permission(kind, Action.CREATE)):
            logger.debug("Create %s denied: principal=%s role=%s", kind.value, principal.id, principal.role.value)
            raise AccessDenied()
        if team_id is not None and team_id not in principal.team_roles:
            logger.debug("Create %s denied: principal=%s is not in team %s", kind.value, principal.id, team_id)
            raise AccessDenied("You are not a member of this team")
