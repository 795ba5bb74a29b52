from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, and_
from sqlalchemy.exc import IntegrityError
import uuid

from app.core.errors import InvalidRequest
from app.db.models.tag import Tag as TagModel, Taggable as TaggableModel
from app.domains.content.entities import ContentKind
from app.domains.tags.entities import Tag


class TagRepository:
    """Репозиторий тегов и их привязок к контенту"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, tag: Tag) -> Tag:
        db_tag = TagModel(id=tag.id, name=tag.name, slug=tag.slug)
        self.session.add(db_tag)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest("Tag already exists")
        return self._to_domain(db_tag)

    async def get_by_id(self, tag_id: uuid.UUID) -> Optional[Tag]:
        result = await self.session.execute(select(TagModel).where(TagModel.id == tag_id))
        db_tag = result.scalar_one_or_none()
        return self._to_domain(db_tag) if db_tag else None

    async def get_by_slug(self, slug: str) -> Optional[Tag]:
        result = await self.session.execute(select(TagModel).where(TagModel.slug == slug))
        db_tag = result.scalar_one_or_none()
        return self._to_domain(db_tag) if db_tag else None

    async def get_by_name(self, name: str) -> Optional[Tag]:
        result = await self.session.execute(
            select(TagModel).where(func.lower(TagModel.name) == name.lower())
        )
        db_tag = result.scalars().first()
        return self._to_domain(db_tag) if db_tag else None

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(func.count(TagModel.id)).where(TagModel.slug == slug)
        )
        return result.scalar() > 0

    async def list_all(self) -> List[Tag]:
        """Все теги по имени"""
        result = await self.session.execute(select(TagModel).order_by(TagModel.name.asc()))
        return [self._to_domain(t) for t in result.scalars().all()]

    async def delete(self, tag_id: uuid.UUID) -> bool:
        result = await self.session.execute(delete(TagModel).where(TagModel.id == tag_id))
        return result.rowcount > 0

    async def attach(self, tag_id: uuid.UUID, kind: ContentKind, entity_id: uuid.UUID) -> bool:
        """Привязка тега; повторная привязка ничего не меняет"""
        exists = await self.session.execute(
            select(func.count()).select_from(TaggableModel).where(self._link(tag_id, kind, entity_id))
        )
        if exists.scalar() > 0:
            return False
        self.session.add(TaggableModel(tag_id=tag_id, taggable_id=entity_id, taggable_type=kind.value))
        await self.session.flush()
        return True

    async def detach(self, tag_id: uuid.UUID, kind: ContentKind, entity_id: uuid.UUID) -> bool:
        result = await self.session.execute(delete(TaggableModel).where(self._link(tag_id, kind, entity_id)))
        return result.rowcount > 0

    async def tags_for(self, kind: ContentKind, entity_id: uuid.UUID) -> List[Tag]:
        """Теги сущности по имени"""
        result = await self.session.execute(
            select(TagModel)
            .join(TaggableModel, TaggableModel.tag_id == TagModel.id)
            .where(TaggableModel.taggable_type == kind.value, TaggableModel.taggable_id == entity_id)
            .order_by(TagModel.name.asc())
        )
        return [self._to_domain(t) for t in result.scalars().all()]

    async def tagged(self, tag_id: uuid.UUID) -> List[Tuple[ContentKind, uuid.UUID]]:
        """Привязки тега в порядке добавления"""
        result = await self.session.execute(
            select(TaggableModel.taggable_type, TaggableModel.taggable_id)
            .where(TaggableModel.tag_id == tag_id)
            .order_by(TaggableModel.created_at.asc())
        )
        return [(ContentKind(kind), entity_id) for kind, entity_id in result.all()]

    @staticmethod
    def _link(tag_id: uuid.UUID, kind: ContentKind, entity_id: uuid.UUID):
        return and_(
            TaggableModel.tag_id == tag_id,
            TaggableModel.taggable_type == kind.value,
            TaggableModel.taggable_id == entity_id
        )

    def _to_domain(self, db_tag: TagModel) -> Tag:
        return Tag(id=db_tag.id, name=db_tag.name, slug=db_tag.slug, created_at=db_tag.created_at)
