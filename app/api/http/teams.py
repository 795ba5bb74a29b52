from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.identity.entities import Principal
from app.domains.teams.entities import Team, TeamInvitation
from app.domains.teams.schemas import (
    TeamCreate, TeamUpdate, TeamMemberAdd, TeamMemberRoleUpdate, InvitationCreate,
    TeamResponse, TeamMemberResponse, TeamSummaryResponse, InvitationResponse
)
from app.domains.teams.services import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


def _team_response(team: Team) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        name=team.name,
        slug=team.slug,
        description=team.description,
        created_by=team.created_by,
        created_at=team.created_at,
        updated_at=team.updated_at,
        members=[
            TeamMemberResponse(
                user_id=m.user_id,
                role=m.role,
                name=m.user_name,
                email=m.user_email,
                image=m.user_image,
                joined_at=m.created_at
            )
            for m in team.members
        ]
    )


def invitation_response(invitation: TeamInvitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        team_id=invitation.team_id,
        token=invitation.token,
        role=invitation.role,
        max_uses=invitation.max_uses,
        uses=invitation.uses,
        expires_at=invitation.expires_at,
        created_by=invitation.created_by,
        created_at=invitation.created_at,
        invite_url=invitation.invite_url
    )


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание команды"""
    team = await TeamService(db).create_team(team_data, principal)
    return _team_response(team)


@router.get("", response_model=List[TeamSummaryResponse])
async def my_teams(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Команды текущего пользователя"""
    teams = await TeamService(db).list_my_teams(principal)
    return [
        TeamSummaryResponse(
            id=team.id,
            name=team.name,
            slug=team.slug,
            description=team.description,
            role=role,
            member_count=len(team.members)
        )
        for team, role in teams
    ]


@router.get("/{slug}", response_model=TeamResponse)
async def get_team(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Команда по slug"""
    team = await TeamService(db).get_team(slug, principal)
    return _team_response(team)


@router.patch("/{slug}", response_model=TeamResponse)
async def update_team(
    slug: str,
    team_data: TeamUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Обновление названия и описания команды"""
    team = await TeamService(db).update_team(slug, team_data, principal)
    return _team_response(team)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление команды (только владелец)"""
    await TeamService(db).delete_team(slug, principal)


@router.post("/{slug}/members", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    slug: str,
    member_data: TeamMemberAdd,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Добавление участника"""
    team = await TeamService(db).add_member(slug, member_data, principal)
    return _team_response(team)


@router.patch("/{slug}/members/{user_id}", response_model=TeamResponse)
async def change_member_role(
    slug: str,
    user_id: uuid.UUID,
    role_data: TeamMemberRoleUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Смена роли участника"""
    team = await TeamService(db).change_member_role(slug, user_id, role_data.role, principal)
    return _team_response(team)


@router.delete("/{slug}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    slug: str,
    user_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление участника"""
    await TeamService(db).remove_member(slug, user_id, principal)


@router.post("/{slug}/invitations", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    slug: str,
    invitation_data: InvitationCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание ссылки-приглашения"""
    invitation = await TeamService(db).create_invitation(slug, invitation_data, principal)
    return invitation_response(invitation)


@router.get("/{slug}/invitations", response_model=List[InvitationResponse])
async def list_invitations(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Приглашения команды"""
    invitations = await TeamService(db).list_invitations(slug, principal)
    return [invitation_response(i) for i in invitations]


@router.delete("/{slug}/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invitation(
    slug: str,
    invitation_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Отзыв приглашения"""
    await TeamService(db).delete_invitation(slug, invitation_id, principal)
