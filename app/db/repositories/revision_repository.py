from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.orm import selectinload
import uuid

from app.db.models.revision import Revision as RevisionModel
from app.domains.revisions.entities import Revision, RevisionAuthor


class RevisionRepository:
    """Репозиторий ревизий страниц (только добавление и чтение)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, revision: Revision) -> Revision:
        """Добавление ревизии"""
        db_revision = RevisionModel(
            id=revision.id,
            page_id=revision.page_id,
            content=revision.content,
            html=revision.html,
            revision_number=revision.revision_number,
            created_by=revision.created_by,
            created_at=revision.created_at
        )

        self.session.add(db_revision)
        await self.session.flush()
        return revision

    async def max_number(self, page_id: uuid.UUID) -> int:
        """Максимальный номер ревизии страницы (0, если ревизий нет)"""
        result = await self.session.execute(
            select(func.max(RevisionModel.revision_number)).where(RevisionModel.page_id == page_id)
        )
        return result.scalar() or 0

    async def count(self, page_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(RevisionModel.id)).where(RevisionModel.page_id == page_id)
        )
        return result.scalar()

    async def get(self, page_id: uuid.UUID, revision_id: uuid.UUID) -> Optional[Revision]:
        """Ревизия страницы; ревизия другой страницы не находится"""
        result = await self.session.execute(
            select(RevisionModel).where(
                and_(
                    RevisionModel.id == revision_id,
                    RevisionModel.page_id == page_id
                )
            )
        )
        db_revision = result.scalar_one_or_none()
        return self._to_domain(db_revision) if db_revision else None

    async def list_for_page(self, page_id: uuid.UUID, limit: int = 100, offset: int = 0) -> List[Revision]:
        """Ревизии страницы от новых к старым вместе с автором"""
        result = await self.session.execute(
            select(RevisionModel)
            .where(RevisionModel.page_id == page_id)
            .options(selectinload(RevisionModel.author))
            .order_by(RevisionModel.revision_number.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(r, with_author=True) for r in result.scalars().all()]

    def _to_domain(self, db_revision: RevisionModel, with_author: bool = False) -> Revision:
        """Преобразование модели БД в доменную сущность"""
        author = None
        if with_author and db_revision.author is not None:
            author = RevisionAuthor(
                id=db_revision.author.id,
                name=db_revision.author.name,
                image=db_revision.author.image
            )
        return Revision(
            id=db_revision.id,
            page_id=db_revision.page_id,
            content=db_revision.content,
            html=db_revision.html,
            revision_number=db_revision.revision_number,
            created_by=db_revision.created_by,
            created_at=db_revision.created_at,
            author=author
        )
