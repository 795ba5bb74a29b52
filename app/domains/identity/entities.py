import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, FrozenSet

from app.core.security import get_password_hash, verify_password
from app.domains.teams.entities import TeamRole


class GlobalRole(str, Enum):
    """Глобальная роль пользователя"""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        id: uuid.UUID,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        image: Optional[str] = None,
        role: GlobalRole = GlobalRole.VIEWER,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.id = id
        self.email = email
        self.password_hash = password_hash
        self.name = name
        self.image = image
        self.role = role
        self.is_active = is_active
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    def authenticate(self, password: str) -> bool:
        """Проверка пароля пользователя"""
        return verify_password(password, self.password_hash)

    @classmethod
    def create_user(
        cls,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: GlobalRole = GlobalRole.VIEWER
    ) -> "User":
        """Создание нового пользователя с хешированием пароля"""
        return cls(
            id=uuid.uuid4(),
            email=email,
            name=name,
            password_hash=get_password_hash(password),
            role=role
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role.value})"


@dataclass(frozen=True)
class Principal:
    """Аутентифицированный участник запроса

    Передается явно во все проверки доступа и сервисы.
    """
    id: uuid.UUID
    role: GlobalRole = GlobalRole.VIEWER
    team_roles: Dict[uuid.UUID, TeamRole] = field(default_factory=dict)
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == GlobalRole.ADMIN

    @property
    def team_ids(self) -> FrozenSet[uuid.UUID]:
        return frozenset(self.team_roles)

    def role_in(self, team_id: uuid.UUID) -> Optional[TeamRole]:
        return self.team_roles.get(team_id)
