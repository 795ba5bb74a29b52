from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
import uuid

from app.core.errors import InvalidRequest
from app.db.models.user import User as UserModel
from app.domains.identity.entities import User, GlobalRole


class UserRepository:
    """Репозиторий для работы с пользователями"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Создание нового пользователя"""
        db_user = UserModel(
            id=user.id,
            email=user.email,
            name=user.name,
            image=user.image,
            password_hash=user.password_hash,
            role=user.role,
            is_active=user.is_active
        )

        self.session.add(db_user)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest("User with this email already exists")
        return self._to_domain(db_user)

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Получение пользователя по id"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Получение пользователя по email"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(func.count(UserModel.id)).where(UserModel.email == email)
        )
        return result.scalar() > 0

    async def list_users(self, limit: int = 100, offset: int = 0) -> List[User]:
        """Получение списка пользователей"""
        result = await self.session.execute(
            select(UserModel)
            .order_by(UserModel.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(u) for u in result.scalars().all()]

    async def update_role(self, user_id: uuid.UUID, role: GlobalRole) -> Optional[User]:
        """Смена глобальной роли"""
        await self.session.execute(
            update(UserModel).where(UserModel.id == user_id).values(role=role)
        )
        await self.session.flush()
        return await self.get_by_id(user_id)

    async def delete(self, user_id: uuid.UUID) -> bool:
        """Удаление пользователя; членства и комментарии удаляются каскадно,
        авторство контента и ревизий обнуляется"""
        result = await self.session.execute(
            delete(UserModel).where(UserModel.id == user_id)
        )
        return result.rowcount > 0

    def _to_domain(self, db_user: UserModel) -> User:
        """Преобразование модели БД в доменную сущность"""
        return User(
            id=db_user.id,
            email=db_user.email,
            name=db_user.name,
            image=db_user.image,
            password_hash=db_user.password_hash,
            role=db_user.role,
            is_active=db_user.is_active,
            created_at=db_user.created_at,
            updated_at=db_user.updated_at
        )
