import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.db import atomic
from app.core.errors import AccessDenied, InvalidRequest, NotFound, Unauthenticated
from app.core.security import create_access_token, verify_token
from app.db.repositories.user_repository import UserRepository
from app.domains.access.permissions import USERS_MANAGE, has_permission
from app.domains.identity.entities import User, GlobalRole, Principal
from app.domains.identity.schemas import UserCreate, UserLogin

logger = logging.getLogger(__name__)


class IdentityService:
    """Сервис для работы с идентификацией и аутентификацией пользователей"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)

    async def register_user(self, user_data: UserCreate) -> User:
        """Регистрация нового пользователя"""
        if await self.user_repository.email_exists(user_data.email):
            raise InvalidRequest("Email already registered")

        user = User.create_user(
            email=user_data.email,
            name=user_data.name,
            password=user_data.password
        )

        async with atomic(self.session):
            created = await self.user_repository.create(user)
        logger.info("User %s registered", created.id)
        return created

    async def authenticate_user(self, login_data: UserLogin) -> Optional[User]:
        """Аутентификация пользователя"""
        user = await self.user_repository.get_by_email(login_data.email)

        if not user or not user.is_active:
            return None

        if not user.authenticate(login_data.password):
            return None

        return user

    async def login_user(self, login_data: UserLogin) -> str:
        """Вход пользователя и создание JWT токена"""
        user = await self.authenticate_user(login_data)

        if not user:
            raise Unauthenticated("Incorrect email or password")

        token_data = {
            "sub": str(user.id),
            "email": user.email
        }

        return create_access_token(data=token_data)

    async def get_user_by_token(self, token: str) -> User:
        """Пользователь по JWT токену"""
        payload = verify_token(token)
        if not payload or not payload.get("sub"):
            raise Unauthenticated("Could not validate credentials")

        try:
            user_id = uuid.UUID(payload["sub"])
        except ValueError:
            raise Unauthenticated("Could not validate credentials")

        user = await self.user_repository.get_by_id(user_id)
        if not user or not user.is_active:
            raise Unauthenticated("Could not validate credentials")
        return user

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def list_users(self, principal: Principal, limit: int = 100, offset: int = 0) -> List[User]:
        """Список пользователей (только для администраторов)"""
        if not has_permission(principal.role, USERS_MANAGE):
            raise AccessDenied()
        return await self.user_repository.list_users(limit, offset)

    async def change_role(self, user_id: uuid.UUID, role: GlobalRole, principal: Principal) -> User:
        """Смена глобальной роли пользователя"""
        if not has_permission(principal.role, USERS_MANAGE):
            raise AccessDenied()
        if user_id == principal.id:
            raise InvalidRequest("Cannot change your own role")
        user = await self.get_user(user_id)

        async with atomic(self.session):
            updated = await self.user_repository.update_role(user.id, role)
        logger.info("User %s role changed %s -> %s by %s", user.id, user.role.value, role.value, principal.id)
        return updated

    async def delete_user(self, user_id: uuid.UUID, principal: Principal) -> None:
        """Удаление пользователя; удалить собственную учетную запись нельзя"""
        if not has_permission(principal.role, USERS_MANAGE):
            raise AccessDenied()
        if user_id == principal.id:
            raise InvalidRequest("Cannot delete your own account")
        user = await self.get_user(user_id)

        async with atomic(self.session):
            await self.user_repository.delete(user.id)
        logger.info("User %s deleted by %s", user.id, principal.id)
