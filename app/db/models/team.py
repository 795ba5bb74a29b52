from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Uuid, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import BaseModel
from app.domains.teams.entities import TeamRole


class Team(BaseModel):
    __tablename__ = "teams"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    invitations = relationship("TeamInvitation", back_populates="team", cascade="all, delete-orphan")


class TeamMember(BaseModel):
    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),)

    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        Enum(TeamRole, name="team_role", values_callable=lambda e: [m.value for m in e]),
        default=TeamRole.MEMBER,
        nullable=False
    )

    # Relationships
    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="memberships")


class TeamInvitation(BaseModel):
    __tablename__ = "team_invitations"

    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(64), unique=True, index=True, nullable=False)
    role = Column(
        Enum(TeamRole, name="team_role", values_callable=lambda e: [m.value for m in e]),
        default=TeamRole.MEMBER,
        nullable=False
    )
    max_uses = Column(Integer, nullable=True)
    uses = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    team = relationship("Team", back_populates="invitations")
    author = relationship("User")
