import logging
import uuid
from typing import Optional, List, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import AccessDenied, InvalidRequest, NotFound
from app.db.repositories.team_repository import TeamRepository
from app.db.repositories.user_repository import UserRepository
from app.domains.access.policy import can_manage_team
from app.domains.content.entities import normalize_slug, generate_slug
from app.domains.identity.entities import Principal, User
from app.domains.teams.entities import Team, TeamMember, TeamRole, TeamInvitation
from app.domains.teams.schemas import TeamCreate, TeamUpdate, TeamMemberAdd, InvitationCreate

logger = logging.getLogger(__name__)


class TeamDirectory:
    """Проекции членства в командах (только чтение)"""

    def __init__(self, session: AsyncSession):
        self.team_repository = TeamRepository(session)

    async def team_ids_of(self, principal_id: uuid.UUID) -> Set[uuid.UUID]:
        return set(await self.team_repository.memberships_of(principal_id))

    async def membership_role(self, principal_id: uuid.UUID, team_id: uuid.UUID) -> Optional[TeamRole]:
        return await self.team_repository.get_member_role(principal_id, team_id)

    async def principal_for(self, user: User) -> Principal:
        """Участник запроса: глобальная роль и все членства"""
        return Principal(
            id=user.id,
            role=user.role,
            team_roles=await self.team_repository.memberships_of(user.id),
            name=user.name
        )


class TeamService:
    """Сервис для управления командами и их участниками"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.team_repository = TeamRepository(session)
        self.user_repository = UserRepository(session)

    async def create_team(self, team_data: TeamCreate, principal: Principal) -> Team:
        """Создание команды; создатель становится владельцем"""
        slug = normalize_slug(team_data.name) or "team"
        async with atomic(self.session):
            if await self.team_repository.slug_exists(slug):
                slug = generate_slug(team_data.name)

            team = Team.create_team(
                name=team_data.name,
                slug=slug,
                created_by=principal.id,
                description=team_data.description
            )
            await self.team_repository.create(team)
            await self.team_repository.add_member(
                TeamMember(team_id=team.id, user_id=principal.id, role=TeamRole.OWNER)
            )
        logger.info("Team %s created by %s", team.slug, principal.id)
        return await self.team_repository.get_by_id(team.id)

    async def list_my_teams(self, principal: Principal) -> List[Tuple[Team, TeamRole]]:
        """Команды участника вместе с его ролью"""
        return await self.team_repository.list_for_user(principal.id)

    async def get_team(self, slug: str, principal: Principal) -> Team:
        """Команда по slug: видна участникам и глобальным администраторам"""
        team = await self._team(slug)
        if team.member(principal.id) is None and not principal.is_admin:
            raise AccessDenied()
        return team

    async def _team(self, slug: str) -> Team:
        team = await self.team_repository.get_by_slug(slug)
        if not team:
            raise NotFound("Team not found")
        return team

    async def _managed_team(
        self,
        slug: str,
        principal: Principal,
        message: str = "Only team owners and admins can manage members"
    ) -> Team:
        team = await self._team(slug)
        if not can_manage_team(principal, team.id):
            logger.debug("Team management denied: principal=%s team=%s", principal.id, team.slug)
            raise AccessDenied(message)
        return team

    async def add_member(self, slug: str, member_data: TeamMemberAdd, principal: Principal) -> Team:
        """Добавление участника"""
        team = await self._managed_team(slug, principal)
        # Назначить владельца может только владелец
        if member_data.role == TeamRole.OWNER and principal.role_in(team.id) != TeamRole.OWNER:
            raise AccessDenied("Only owners can add owners")
        if not await self.user_repository.get_by_id(member_data.user_id):
            raise NotFound("User not found")

        async with atomic(self.session):
            await self.team_repository.add_member(
                TeamMember(team_id=team.id, user_id=member_data.user_id, role=member_data.role)
            )
        logger.info("User %s added to team %s as %s", member_data.user_id, team.slug, member_data.role.value)
        return await self.team_repository.get_by_id(team.id)

    async def change_member_role(
        self,
        slug: str,
        user_id: uuid.UUID,
        role: TeamRole,
        principal: Principal
    ) -> Team:
        """Смена роли участника; последнего владельца понизить нельзя"""
        team = await self._managed_team(slug, principal)
        member = team.member(user_id)
        if member is None:
            raise NotFound("Member not found")
        if TeamRole.OWNER in (role, member.role) and principal.role_in(team.id) != TeamRole.OWNER:
            raise AccessDenied("Only owners can change owner roles")
        if member.role == TeamRole.OWNER and role != TeamRole.OWNER and len(team.owners()) == 1:
            raise InvalidRequest("Team must keep at least one owner")

        async with atomic(self.session):
            await self.team_repository.update_member_role(team.id, user_id, role)
        logger.info("Member %s of team %s is now %s", user_id, team.slug, role.value)
        return await self.team_repository.get_by_id(team.id)

    async def remove_member(self, slug: str, user_id: uuid.UUID, principal: Principal) -> None:
        """Удаление участника; последнего владельца удалить нельзя"""
        team = await self._managed_team(slug, principal)
        member = team.member(user_id)
        if member is None:
            raise NotFound("Member not found")
        if member.role == TeamRole.OWNER:
            if principal.role_in(team.id) != TeamRole.OWNER:
                raise AccessDenied("Only owners can remove owners")
            if len(team.owners()) == 1:
                raise InvalidRequest("Team must keep at least one owner")

        async with atomic(self.session):
            await self.team_repository.remove_member(team.id, user_id)
        logger.info("Member %s removed from team %s", user_id, team.slug)

    async def update_team(self, slug: str, team_data: TeamUpdate, principal: Principal) -> Team:
        """Обновление команды; новое имя дает новый slug"""
        team = await self._managed_team(slug, principal, "Only team owners and admins can edit the team")
        values = {}
        if "description" in team_data.model_fields_set:
            values["description"] = team_data.description

        async with atomic(self.session):
            if team_data.name is not None and team_data.name != team.name:
                values["name"] = team_data.name
                new_slug = normalize_slug(team_data.name) or "team"
                if new_slug != team.slug and await self.team_repository.slug_exists(new_slug):
                    new_slug = generate_slug(team_data.name)
                values["slug"] = new_slug
            updated = await self.team_repository.update(team.id, **values)
        logger.info("Team %s updated by %s, slug now %s", team.slug, principal.id, updated.slug)
        return updated

    async def delete_team(self, slug: str, principal: Principal) -> None:
        """Удаление команды: только владелец; командный контент остается у авторов"""
        team = await self._team(slug)
        if principal.role_in(team.id) != TeamRole.OWNER:
            logger.debug("Team deletion denied: principal=%s team=%s", principal.id, team.slug)
            raise AccessDenied("Only team owners can delete teams")

        async with atomic(self.session):
            await self.team_repository.delete(team.id)
        logger.info("Team %s deleted by %s", team.slug, principal.id)

    # --- приглашения ---

    async def create_invitation(
        self,
        slug: str,
        invitation_data: InvitationCreate,
        principal: Principal
    ) -> TeamInvitation:
        """Ссылка-приглашение в команду"""
        team = await self._managed_team(slug, principal, "Only team owners and admins can invite members")
        invitation = TeamInvitation.create_invitation(
            team_id=team.id,
            created_by=principal.id,
            role=invitation_data.role,
            max_uses=invitation_data.max_uses,
            expires_in_days=invitation_data.expires_in_days
        )

        async with atomic(self.session):
            created = await self.team_repository.create_invitation(invitation)
        logger.info("Invitation to team %s created by %s as %s", team.slug, principal.id, created.role.value)
        return created

    async def list_invitations(self, slug: str, principal: Principal) -> List[TeamInvitation]:
        team = await self._managed_team(slug, principal, "Only team owners and admins can view invitations")
        return await self.team_repository.list_invitations(team.id)

    async def delete_invitation(self, slug: str, invitation_id: uuid.UUID, principal: Principal) -> None:
        """Отзыв приглашения"""
        team = await self._managed_team(slug, principal, "Only team owners and admins can revoke invitations")
        invitation = await self.team_repository.get_invitation(invitation_id)
        if not invitation or invitation.team_id != team.id:
            raise NotFound("Invitation not found")

        async with atomic(self.session):
            await self.team_repository.delete_invitation(invitation.id)
        logger.info("Invitation %s to team %s revoked by %s", invitation.id, team.slug, principal.id)

    async def _usable_invitation(self, token: str) -> TeamInvitation:
        invitation = await self.team_repository.get_invitation_by_token(token)
        if not invitation:
            raise NotFound("Invalid invitation link")
        if invitation.is_expired():
            raise InvalidRequest("This invitation has expired")
        if invitation.is_exhausted:
            raise InvalidRequest("This invitation has reached its usage limit")
        return invitation

    async def invitation_info(self, token: str) -> TeamInvitation:
        """Сведения о приглашении для страницы приглашения (без аутентификации)"""
        return await self._usable_invitation(token)

    async def accept_invitation(self, token: str, principal: Principal) -> TeamInvitation:
        """Вступление в команду по ссылке; использование учитывается атомарно"""
        async with atomic(self.session):
            invitation = await self._usable_invitation(token)
            if await self.team_repository.get_member_role(principal.id, invitation.team_id) is not None:
                raise InvalidRequest("You are already a member of this team")
            if not await self.team_repository.use_invitation(invitation.id):
                raise InvalidRequest("This invitation has reached its usage limit")
            await self.team_repository.add_member(
                TeamMember(team_id=invitation.team_id, user_id=principal.id, role=invitation.role)
            )
        logger.info("User %s joined team %s by invitation %s", principal.id, invitation.team.slug, invitation.id)
        return invitation
