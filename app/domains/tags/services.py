import logging
import uuid
from collections import defaultdict
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import AccessDenied, InvalidRequest, NotFound
from app.db.repositories.tag_repository import TagRepository
from app.domains.content.entities import ContentEntity, ContentKind
from app.domains.content.services import ContentService
from app.domains.identity.entities import Principal
from app.domains.tags.entities import Tag
from app.domains.tags.schemas import TagCreate

logger = logging.getLogger(__name__)


class TagService:
    """Теги: общий словарь и привязки к полкам, книгам, главам и страницам

    Словарь тегов общий для всех участников. Привязка к сущности требует
    права на ее изменение, просмотр привязок - права на чтение.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tag_repository = TagRepository(session)
        self.content_service = ContentService(session)
        self.resolver = self.content_service.resolver

    async def _tag(self, tag_id: uuid.UUID) -> Tag:
        tag = await self.tag_repository.get_by_id(tag_id)
        if not tag:
            raise NotFound("Tag not found")
        return tag

    async def _entity(self, kind: ContentKind, slug: str) -> ContentEntity:
        entity = await self.content_service.repository_for(kind).get_by_slug(slug)
        if not entity:
            raise NotFound(f"{kind.value.capitalize()} not found")
        return entity

    async def list_tags(self) -> List[Tag]:
        return await self.tag_repository.list_all()

    async def create_tag(self, data: TagCreate, principal: Principal) -> Tag:
        """Создание тега; имена уникальны без учета регистра"""
        if await self.tag_repository.get_by_name(data.name):
            raise InvalidRequest("Tag already exists")

        async with atomic(self.session):
            tag = Tag.create_tag(data.name)
            while await self.tag_repository.slug_exists(tag.slug):
                tag = Tag.create_tag(data.name)
            created = await self.tag_repository.create(tag)
        logger.info("Tag %s created by %s", created.slug, principal.id)
        return created

    async def delete_tag(self, tag_id: uuid.UUID, principal: Principal) -> None:
        """Удаление тега со всеми привязками (только admin)"""
        if not principal.is_admin:
            raise AccessDenied("Only administrators can delete tags")
        tag = await self._tag(tag_id)

        async with atomic(self.session):
            await self.tag_repository.delete(tag.id)
        logger.info("Tag %s deleted by %s", tag.slug, principal.id)

    async def tag_detail(self, slug: str, principal: Principal) -> Tuple[Tag, List[ContentEntity]]:
        """Тег и помеченные сущности; удаленные и недоступные пропускаются"""
        tag = await self.tag_repository.get_by_slug(slug)
        if not tag:
            raise NotFound("Tag not found")

        links = await self.tag_repository.tagged(tag.id)
        ids_by_kind = defaultdict(list)
        for kind, entity_id in links:
            ids_by_kind[kind].append(entity_id)

        found = {}
        for kind, ids in ids_by_kind.items():
            for entity in await self.content_service.repository_for(kind).get_many(ids):
                found[(kind, entity.id)] = entity

        entities = []
        for key in links:
            entity = found.get(key)
            if entity is not None and await self.resolver.can_read(principal, entity):
                entities.append(entity)
        return tag, entities

    async def entity_tags(self, kind: ContentKind, slug: str, principal: Principal) -> List[Tag]:
        entity = await self._entity(kind, slug)
        await self.resolver.require_read(principal, entity)
        return await self.tag_repository.tags_for(kind, entity.id)

    async def attach_tag(
        self,
        kind: ContentKind,
        slug: str,
        tag_id: uuid.UUID,
        principal: Principal
    ) -> List[Tag]:
        """Привязка тега к сущности; возвращает ее теги"""
        entity = await self._entity(kind, slug)
        await self.resolver.require_manage(principal, entity)
        tag = await self._tag(tag_id)

        async with atomic(self.session):
            attached = await self.tag_repository.attach(tag.id, kind, entity.id)
        if attached:
            logger.info("Tag %s attached to %s %s by %s", tag.slug, kind.value, entity.slug, principal.id)
        return await self.tag_repository.tags_for(kind, entity.id)

    async def detach_tag(
        self,
        kind: ContentKind,
        slug: str,
        tag_id: uuid.UUID,
        principal: Principal
    ) -> None:
        entity = await self._entity(kind, slug)
        await self.resolver.require_manage(principal, entity)

        async with atomic(self.session):
            detached = await self.tag_repository.detach(tag_id, kind, entity.id)
        if not detached:
            raise NotFound("Tag is not attached")
        logger.info("Tag %s detached from %s %s by %s", tag_id, kind.value, entity.slug, principal.id)
