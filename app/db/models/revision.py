from sqlalchemy import Column, Text, Integer, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Revision(BaseModel):
    __tablename__ = "revisions"
    __table_args__ = (UniqueConstraint("page_id", "revision_number", name="uq_revisions_page_number"),)

    page_id = Column(Uuid(as_uuid=True), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    html = Column(Text, nullable=True)
    revision_number = Column(Integer, default=1, nullable=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    page = relationship("Page", back_populates="revisions")
    author = relationship("User")
