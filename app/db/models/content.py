from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class OwnedMixin:
    """Поля владения: команда или личный владелец"""

    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class Shelf(OwnedMixin, BaseModel):
    __tablename__ = "shelves"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    books = relationship("Book", back_populates="shelf")


class Book(OwnedMixin, BaseModel):
    __tablename__ = "books"

    shelf_id = Column(Uuid(as_uuid=True), ForeignKey("shelves.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    shelf = relationship("Shelf", back_populates="books")
    chapters = relationship("Chapter", back_populates="book", cascade="all, delete-orphan")
    pages = relationship("Page", back_populates="book", cascade="all, delete-orphan")


class Chapter(OwnedMixin, BaseModel):
    __tablename__ = "chapters"

    book_id = Column(Uuid(as_uuid=True), ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    book = relationship("Book", back_populates="chapters")
    pages = relationship("Page", back_populates="chapter")


class Page(OwnedMixin, BaseModel):
    __tablename__ = "pages"

    chapter_id = Column(Uuid(as_uuid=True), ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True, index=True)
    book_id = Column(Uuid(as_uuid=True), ForeignKey("books.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, default="", nullable=True)
    html = Column(Text, nullable=True)
    draft = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    share_token = Column(String(32), unique=True, nullable=True)

    # Relationships
    book = relationship("Book", back_populates="pages")
    chapter = relationship("Chapter", back_populates="pages")
    revisions = relationship("Revision", back_populates="page", cascade="all, delete-orphan")
