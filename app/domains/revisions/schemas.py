from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
import uuid


class RevisionAuthorResponse(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RevisionResponse(BaseModel):
    """Схема для ответа с данными ревизии"""
    id: uuid.UUID
    page_id: uuid.UUID
    content: str
    html: Optional[str] = None
    revision_number: int
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    author: Optional[RevisionAuthorResponse] = None

    model_config = ConfigDict(from_attributes=True)


class RevisionListResponse(BaseModel):
    revisions: List[RevisionResponse]
    total: int
