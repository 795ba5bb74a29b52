from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import List
from datetime import datetime
import uuid

from app.domains.content.entities import ContentKind


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class TagAttach(BaseModel):
    tag_id: uuid.UUID


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaggedEntityResponse(BaseModel):
    kind: ContentKind
    id: uuid.UUID
    name: str
    slug: str


class TagDetailResponse(BaseModel):
    """Тег и помеченные им сущности, доступные для чтения"""
    tag: TagResponse
    entities: List[TaggedEntityResponse] = []
