from sqlalchemy import Column, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Comment(BaseModel):
    __tablename__ = "comments"

    page_id = Column(Uuid(as_uuid=True), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    content = Column(Text, nullable=False)

    # Relationships
    author = relationship("User")
