import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, List

INVITE_TOKEN_ALPHABET = string.ascii_letters + string.digits
INVITE_TOKEN_LENGTH = 24


class TeamRole(str, Enum):
    """Роль участника внутри команды"""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def can_manage(self) -> bool:
        return self in (TeamRole.OWNER, TeamRole.ADMIN)


class TeamMember:
    """Участник команды"""

    def __init__(
        self,
        team_id: uuid.UUID,
        user_id: uuid.UUID,
        role: TeamRole = TeamRole.MEMBER,
        id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
        user_image: Optional[str] = None
    ):
        self.id = id or uuid.uuid4()
        self.team_id = team_id
        self.user_id = user_id
        self.role = role
        self.created_at = created_at or datetime.now(timezone.utc)
        self.user_name = user_name
        self.user_email = user_email
        self.user_image = user_image

    def __repr__(self) -> str:
        return f"TeamMember(team_id={self.team_id}, user_id={self.user_id}, role={self.role.value})"


class Team:
    """Сущность команды"""

    def __init__(
        self,
        id: uuid.UUID,
        name: str,
        slug: str,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        members: Optional[List[TeamMember]] = None
    ):
        self.id = id
        self.name = name
        self.slug = slug
        self.description = description
        self.created_by = created_by
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)
        self.members = members or []

    def member(self, user_id: uuid.UUID) -> Optional[TeamMember]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def owners(self) -> List[TeamMember]:
        return [m for m in self.members if m.role == TeamRole.OWNER]

    @classmethod
    def create_team(cls, name: str, slug: str, created_by: uuid.UUID, description: Optional[str] = None) -> "Team":
        """Создание новой команды"""
        return cls(
            id=uuid.uuid4(),
            name=name,
            slug=slug,
            description=description,
            created_by=created_by
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Team):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Team(id={self.id}, slug={self.slug})"


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite возвращает наивные метки времени, они хранятся в UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TeamInvitation:
    """Ссылка-приглашение в команду с ограничением по сроку и числу использований"""

    def __init__(
        self,
        team_id: uuid.UUID,
        token: str,
        role: TeamRole = TeamRole.MEMBER,
        max_uses: Optional[int] = None,
        uses: int = 0,
        expires_at: Optional[datetime] = None,
        created_by: Optional[uuid.UUID] = None,
        id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        team: Optional[Team] = None
    ):
        self.id = id or uuid.uuid4()
        self.team_id = team_id
        self.token = token
        self.role = role
        self.max_uses = max_uses
        self.uses = uses
        self.expires_at = _aware(expires_at)
        self.created_by = created_by
        self.created_at = _aware(created_at) or datetime.now(timezone.utc)
        self.team = team

    @property
    def invite_url(self) -> str:
        return f"/invite/{self.token}"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) > self.expires_at

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.uses >= self.max_uses

    @classmethod
    def create_invitation(
        cls,
        team_id: uuid.UUID,
        created_by: uuid.UUID,
        role: TeamRole = TeamRole.MEMBER,
        max_uses: Optional[int] = None,
        expires_in_days: Optional[int] = None
    ) -> "TeamInvitation":
        """Новое приглашение со случайным токеном"""
        token = "".join(secrets.choice(INVITE_TOKEN_ALPHABET) for _ in range(INVITE_TOKEN_LENGTH))
        expires_at = None
        if expires_in_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)
        return cls(
            team_id=team_id,
            token=token,
            role=role,
            max_uses=max_uses,
            expires_at=expires_at,
            created_by=created_by
        )

    def __repr__(self) -> str:
        return f"TeamInvitation(team_id={self.team_id}, role={self.role.value}, uses={self.uses})"
