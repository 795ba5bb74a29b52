from pydantic import BaseModel
from typing import Optional
import uuid

from app.domains.content.entities import ContentKind


class SearchResultResponse(BaseModel):
    id: uuid.UUID
    type: ContentKind
    name: str
    slug: str
    snippet: Optional[str] = None
    rank: float
