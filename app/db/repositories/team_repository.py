from typing import Optional, List, Dict, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import uuid

from app.core.errors import InvalidRequest
from app.db.base import utc_now
from app.db.models.team import (
    Team as TeamModel,
    TeamMember as TeamMemberModel,
    TeamInvitation as TeamInvitationModel
)
from app.domains.teams.entities import Team, TeamMember, TeamRole, TeamInvitation


class TeamRepository:
    """Репозиторий для работы с командами и их участниками"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, team: Team) -> Team:
        """Создание новой команды"""
        db_team = TeamModel(
            id=team.id,
            name=team.name,
            slug=team.slug,
            description=team.description,
            created_by=team.created_by
        )

        self.session.add(db_team)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest("Team slug already in use")
        return await self.get_by_id(team.id)

    async def get_by_id(self, team_id: uuid.UUID) -> Optional[Team]:
        """Получение команды по id вместе с участниками"""
        result = await self.session.execute(
            select(TeamModel)
            .where(TeamModel.id == team_id)
            .options(selectinload(TeamModel.members).selectinload(TeamMemberModel.user))
            .execution_options(populate_existing=True)
        )
        db_team = result.scalar_one_or_none()
        return self._to_domain(db_team) if db_team else None

    async def get_by_slug(self, slug: str) -> Optional[Team]:
        """Получение команды по slug вместе с участниками"""
        result = await self.session.execute(
            select(TeamModel)
            .where(TeamModel.slug == slug)
            .options(selectinload(TeamModel.members).selectinload(TeamMemberModel.user))
            .execution_options(populate_existing=True)
        )
        db_team = result.scalar_one_or_none()
        return self._to_domain(db_team) if db_team else None

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(func.count(TeamModel.id)).where(TeamModel.slug == slug)
        )
        return result.scalar() > 0

    async def list_for_user(self, user_id: uuid.UUID) -> List[Tuple[Team, TeamRole]]:
        """Команды пользователя вместе с его ролью в каждой"""
        result = await self.session.execute(
            select(TeamModel, TeamMemberModel.role)
            .join(TeamMemberModel, TeamMemberModel.team_id == TeamModel.id)
            .where(TeamMemberModel.user_id == user_id)
            .options(selectinload(TeamModel.members).selectinload(TeamMemberModel.user))
            .order_by(TeamModel.name.asc())
            .execution_options(populate_existing=True)
        )
        return [(self._to_domain(db_team), role) for db_team, role in result.all()]

    async def memberships_of(self, user_id: uuid.UUID) -> Dict[uuid.UUID, TeamRole]:
        """Проекция членства: team_id -> роль"""
        result = await self.session.execute(
            select(TeamMemberModel.team_id, TeamMemberModel.role)
            .where(TeamMemberModel.user_id == user_id)
        )
        return {team_id: role for team_id, role in result.all()}

    async def get_member_role(self, user_id: uuid.UUID, team_id: uuid.UUID) -> Optional[TeamRole]:
        result = await self.session.execute(
            select(TeamMemberModel.role).where(
                and_(
                    TeamMemberModel.user_id == user_id,
                    TeamMemberModel.team_id == team_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def add_member(self, member: TeamMember) -> TeamMember:
        """Добавление участника в команду"""
        db_member = TeamMemberModel(
            id=member.id,
            team_id=member.team_id,
            user_id=member.user_id,
            role=member.role
        )

        self.session.add(db_member)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest("User is already a member of this team")
        return member

    async def update_member_role(self, team_id: uuid.UUID, user_id: uuid.UUID, role: TeamRole) -> bool:
        result = await self.session.execute(
            update(TeamMemberModel)
            .where(
                and_(
                    TeamMemberModel.team_id == team_id,
                    TeamMemberModel.user_id == user_id
                )
            )
            .values(role=role)
        )
        return result.rowcount > 0

    async def remove_member(self, team_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(TeamMemberModel).where(
                and_(
                    TeamMemberModel.team_id == team_id,
                    TeamMemberModel.user_id == user_id
                )
            )
        )
        return result.rowcount > 0

    async def update(self, team_id: uuid.UUID, **values) -> Optional[Team]:
        """Обновление названия, slug или описания"""
        values.setdefault("updated_at", utc_now())
        try:
            await self.session.execute(
                update(TeamModel).where(TeamModel.id == team_id).values(**values)
            )
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidRequest("Team slug already in use")
        return await self.get_by_id(team_id)

    async def delete(self, team_id: uuid.UUID) -> bool:
        """Удаление команды; участники и приглашения удаляются каскадно,
        командный контент остается у авторов"""
        result = await self.session.execute(
            delete(TeamModel).where(TeamModel.id == team_id)
        )
        return result.rowcount > 0

    async def create_invitation(self, invitation: TeamInvitation) -> TeamInvitation:
        db_invitation = TeamInvitationModel(
            id=invitation.id,
            team_id=invitation.team_id,
            token=invitation.token,
            role=invitation.role,
            max_uses=invitation.max_uses,
            uses=invitation.uses,
            expires_at=invitation.expires_at,
            created_by=invitation.created_by
        )
        self.session.add(db_invitation)
        await self.session.flush()
        return await self.get_invitation(invitation.id)

    async def get_invitation(self, invitation_id: uuid.UUID) -> Optional[TeamInvitation]:
        result = await self.session.execute(
            select(TeamInvitationModel)
            .where(TeamInvitationModel.id == invitation_id)
            .options(
                selectinload(TeamInvitationModel.team)
                .selectinload(TeamModel.members)
                .selectinload(TeamMemberModel.user)
            )
            .execution_options(populate_existing=True)
        )
        db_invitation = result.scalar_one_or_none()
        return self._invitation_to_domain(db_invitation) if db_invitation else None

    async def get_invitation_by_token(self, token: str) -> Optional[TeamInvitation]:
        """Приглашение по токену вместе с командой"""
        result = await self.session.execute(
            select(TeamInvitationModel)
            .where(TeamInvitationModel.token == token)
            .options(
                selectinload(TeamInvitationModel.team)
                .selectinload(TeamModel.members)
                .selectinload(TeamMemberModel.user)
            )
            .execution_options(populate_existing=True)
        )
        db_invitation = result.scalar_one_or_none()
        return self._invitation_to_domain(db_invitation) if db_invitation else None

    async def list_invitations(self, team_id: uuid.UUID) -> List[TeamInvitation]:
        """Приглашения команды, новые первыми"""
        result = await self.session.execute(
            select(TeamInvitationModel)
            .where(TeamInvitationModel.team_id == team_id)
            .order_by(TeamInvitationModel.created_at.desc())
        )
        return [self._invitation_to_domain(i, with_team=False) for i in result.scalars().all()]

    async def delete_invitation(self, invitation_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(TeamInvitationModel).where(TeamInvitationModel.id == invitation_id)
        )
        return result.rowcount > 0

    async def use_invitation(self, invitation_id: uuid.UUID) -> bool:
        """Атомарный учет использования; False, если лимит уже исчерпан"""
        result = await self.session.execute(
            update(TeamInvitationModel)
            .where(
                and_(
                    TeamInvitationModel.id == invitation_id,
                    or_(
                        TeamInvitationModel.max_uses.is_(None),
                        TeamInvitationModel.uses < TeamInvitationModel.max_uses
                    )
                )
            )
            .values(uses=TeamInvitationModel.uses + 1, updated_at=utc_now())
        )
        return result.rowcount > 0

    def _invitation_to_domain(self, db_invitation: TeamInvitationModel, with_team: bool = True) -> TeamInvitation:
        return TeamInvitation(
            id=db_invitation.id,
            team_id=db_invitation.team_id,
            token=db_invitation.token,
            role=db_invitation.role,
            max_uses=db_invitation.max_uses,
            uses=db_invitation.uses,
            expires_at=db_invitation.expires_at,
            created_by=db_invitation.created_by,
            created_at=db_invitation.created_at,
            team=self._to_domain(db_invitation.team) if with_team else None
        )

    def _to_domain(self, db_team: TeamModel) -> Team:
        """Преобразование модели БД в доменную сущность"""
        members = [
            TeamMember(
                id=m.id,
                team_id=m.team_id,
                user_id=m.user_id,
                role=m.role,
                created_at=m.created_at,
                user_name=m.user.name if m.user else None,
                user_email=m.user.email if m.user else None,
                user_image=m.user.image if m.user else None
            )
            for m in db_team.members
        ]
        return Team(
            id=db_team.id,
            name=db_team.name,
            slug=db_team.slug,
            description=db_team.description,
            created_by=db_team.created_by,
            created_at=db_team.created_at,
            updated_at=db_team.updated_at,
            members=members
        )
