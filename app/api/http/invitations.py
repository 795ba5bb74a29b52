from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.identity.entities import Principal
from app.domains.teams.schemas import InvitationInfoResponse, InvitationTeam, InvitationAcceptResponse
from app.domains.teams.services import TeamService

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("/{token}", response_model=InvitationInfoResponse)
async def invitation_info(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Сведения о приглашении (без аутентификации)"""
    invitation = await TeamService(db).invitation_info(token)
    team = invitation.team
    return InvitationInfoResponse(
        team=InvitationTeam(id=team.id, name=team.name, slug=team.slug, description=team.description),
        role=invitation.role
    )


@router.post("/{token}/accept", response_model=InvitationAcceptResponse)
async def accept_invitation(
    token: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Вступление в команду по приглашению"""
    invitation = await TeamService(db).accept_invitation(token, principal)
    return InvitationAcceptResponse(team_name=invitation.team.name, team_slug=invitation.team.slug)
