from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship

from app.db.base import BaseModel
from app.domains.identity.entities import GlobalRole


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(GlobalRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=GlobalRole.VIEWER,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")
