from pydantic import BaseModel, Field, HttpUrl
from typing import Optional, List, Literal
import uuid


class SummarizeRequest(BaseModel):
    """Схема запроса на суммаризацию URL"""
    url: HttpUrl
    book_name: Optional[str] = Field(None, max_length=255)
    language: Literal["en", "id"] = "en"


class GeneratedPage(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    content: str = ""
    html: str = ""


class GeneratedChapter(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    pages: List[GeneratedPage] = []


class GeneratedBook(BaseModel):
    """Сгенерированная книга: главы со страницами"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    chapters: List[GeneratedChapter] = []


class GeneratedBookStats(BaseModel):
    total_chapters: int
    total_pages: int
    estimated_read_time: int


class SummarizeResponse(GeneratedBook):
    stats: GeneratedBookStats


class CreateGeneratedBookRequest(BaseModel):
    book: GeneratedBook
    shelf_id: Optional[uuid.UUID] = None
    team_id: Optional[uuid.UUID] = None


class CreateGeneratedBookResponse(BaseModel):
    success: bool = True
    slug: str
    id: uuid.UUID
