from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.db.base import BaseModel, utc_now


class Tag(BaseModel):
    __tablename__ = "tags"

    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)

    # Relationships
    taggables = relationship("Taggable", back_populates="tag", cascade="all, delete-orphan")


class Taggable(Base):
    """Связь тега с полкой, книгой, главой или страницей

    Ссылка на сущность полиморфная, поэтому внешнего ключа на нее нет.
    """
    __tablename__ = "taggables"

    tag_id = Column(Uuid(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    taggable_id = Column(Uuid(as_uuid=True), primary_key=True, index=True)
    taggable_type = Column(String(20), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    tag = relationship("Tag", back_populates="taggables")
