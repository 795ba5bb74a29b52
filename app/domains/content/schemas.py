from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import Optional, List
from datetime import datetime
import uuid


class ContentBase(BaseModel):
    """Базовая схема полки, книги, главы и страницы"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class OwnedCreate(ContentBase):
    """Явный slug и команда-владелец при создании"""
    slug: Optional[str] = Field(None, max_length=100)
    team_id: Optional[uuid.UUID] = None


class ShelfCreate(OwnedCreate):
    pass


class BookCreate(OwnedCreate):
    shelf_id: Optional[uuid.UUID] = None


class ChapterCreate(OwnedCreate):
    book_id: uuid.UUID


class PageCreate(OwnedCreate):
    """Схема для создания страницы"""
    content: str = Field(default="", max_length=1000000)
    html: Optional[str] = Field(None, max_length=2000000)
    book_id: Optional[uuid.UUID] = None
    chapter_id: Optional[uuid.UUID] = None
    draft: bool = False


class ContentUpdate(BaseModel):
    """Схема для обновления метаданных"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v else v


class ShelfUpdate(ContentUpdate):
    pass


class BookUpdate(ContentUpdate):
    shelf_id: Optional[uuid.UUID] = None


class ChapterUpdate(ContentUpdate):
    pass


class PageUpdate(BaseModel):
    """Правка страницы; изменение content/html записывает ревизию"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=1000000)
    html: Optional[str] = Field(None, max_length=2000000)
    draft: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v else v


class PageMove(BaseModel):
    """Новый родитель страницы: глава, книга или обе"""
    book_id: Optional[uuid.UUID] = None
    chapter_id: Optional[uuid.UUID] = None

    @model_validator(mode='after')
    def require_target(self):
        if self.book_id is None and self.chapter_id is None:
            raise ValueError('Target book or chapter is required')
        return self


class ContentResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    team_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShelfResponse(ContentResponse):
    pass


class BookResponse(ContentResponse):
    shelf_id: Optional[uuid.UUID] = None


class ChapterResponse(ContentResponse):
    book_id: uuid.UUID


class PageResponse(ContentResponse):
    book_id: Optional[uuid.UUID] = None
    chapter_id: Optional[uuid.UUID] = None
    content: Optional[str] = ""
    html: Optional[str] = None
    draft: bool
    is_public: bool = False


class ReadPage(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    html: Optional[str] = None
    chapter_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(from_attributes=True)


class ReadChapter(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    pages: List[ReadPage] = []


class BookReadResponse(BaseModel):
    """Книга для чтения: главы со страницами и прямые страницы"""
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    chapters: List[ReadChapter] = []
    direct_pages: List[ReadPage] = []


class ReadBook(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ShelfReadResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    books: List[ReadBook] = []
