from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
from datetime import datetime
import uuid

from app.domains.teams.entities import TeamRole


class TeamCreate(BaseModel):
    """Схема для создания команды"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class TeamMemberAdd(BaseModel):
    """Схема для добавления участника"""
    user_id: uuid.UUID
    role: TeamRole = TeamRole.MEMBER


class TeamMemberRoleUpdate(BaseModel):
    role: TeamRole


class TeamMemberResponse(BaseModel):
    """Участник команды вместе с проекцией пользователя"""
    user_id: uuid.UUID
    role: TeamRole
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    joined_at: datetime


class TeamResponse(BaseModel):
    """Схема для ответа с данными команды"""
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    members: List[TeamMemberResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TeamSummaryResponse(BaseModel):
    """Команда в списке "мои команды" """
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    role: TeamRole
    member_count: int


class TeamUpdate(BaseModel):
    """Схема для обновления команды; новое имя меняет slug"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v else v


class InvitationCreate(BaseModel):
    """Параметры ссылки-приглашения; владельцев по ссылке не приглашают"""
    role: TeamRole = TeamRole.MEMBER
    max_uses: Optional[int] = Field(None, ge=1, le=10000)
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v == TeamRole.OWNER:
            raise ValueError('Invitations cannot grant the owner role')
        return v


class InvitationResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    token: str
    role: TeamRole
    max_uses: Optional[int] = None
    uses: int
    expires_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    invite_url: str

    model_config = ConfigDict(from_attributes=True)


class InvitationTeam(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None


class InvitationInfoResponse(BaseModel):
    """Публичные сведения о приглашении"""
    team: InvitationTeam
    role: TeamRole


class InvitationAcceptResponse(BaseModel):
    success: bool = True
    team_name: str
    team_slug: str
