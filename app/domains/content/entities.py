import re
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List


class ContentKind(str, Enum):
    SHELF = "shelf"
    BOOK = "book"
    CHAPTER = "chapter"
    PAGE = "page"


@dataclass
class ContentEntity:
    """Общие поля полки, книги, главы и страницы

    Владение: если задан team_id, сущность видна всем участникам команды;
    иначе она личная и принадлежит created_by.
    """
    id: uuid.UUID
    name: str
    slug: str
    team_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    description: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    kind = None

    @property
    def is_personal(self) -> bool:
        return self.team_id is None


@dataclass
class Shelf(ContentEntity):
    kind = ContentKind.SHELF


@dataclass
class Book(ContentEntity):
    shelf_id: Optional[uuid.UUID] = None

    kind = ContentKind.BOOK


@dataclass
class Chapter(ContentEntity):
    book_id: Optional[uuid.UUID] = None

    kind = ContentKind.CHAPTER


@dataclass
class Page(ContentEntity):
    book_id: Optional[uuid.UUID] = None
    chapter_id: Optional[uuid.UUID] = None
    content: Optional[str] = ""
    html: Optional[str] = None
    draft: bool = False
    is_public: bool = False
    share_token: Optional[str] = None

    kind = ContentKind.PAGE


@dataclass
class ChapterTree:
    """Глава со страницами в порядке sort_order"""
    chapter: Chapter
    pages: List[Page] = field(default_factory=list)


@dataclass
class BookTree:
    """Книга с главами и прямыми страницами (без главы)"""
    book: Book
    chapters: List[ChapterTree] = field(default_factory=list)
    direct_pages: List[Page] = field(default_factory=list)


def normalize_slug(value: str) -> str:
    slug = (value or "").strip().lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")[:100]


def generate_slug(name: str) -> str:
    """Slug из имени с коротким случайным суффиксом"""
    base = normalize_slug(name) or "untitled"
    return f"{base}-{secrets.token_hex(3)}"
