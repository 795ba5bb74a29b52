from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid


class ShareInfoResponse(BaseModel):
    """Состояние публичной ссылки страницы"""
    is_public: bool
    share_token: Optional[str] = None
    share_url: Optional[str] = None


class SharedAuthor(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    image: Optional[str] = None


class SharedPageResponse(BaseModel):
    """Страница, открытая по публичной ссылке"""
    name: str
    html: Optional[str] = None
    content: Optional[str] = ""
    book_name: Optional[str] = None
    author: Optional[SharedAuthor] = None
    updated_at: datetime
