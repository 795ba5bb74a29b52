from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import uuid


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: Optional[uuid.UUID] = None

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError('Content is required')
        return v.strip()


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError('Content is required')
        return v.strip()


class CommentAuthor(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class CommentResponse(BaseModel):
    id: uuid.UUID
    page_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    content: str
    author: CommentAuthor
    created_at: datetime
    updated_at: datetime


class CommentThreadResponse(CommentResponse):
    """Комментарий верхнего уровня с ответами"""
    replies: List[CommentResponse] = []
