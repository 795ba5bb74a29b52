import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.domains.content.entities import ContentEntity, generate_slug


@dataclass
class Tag:
    id: uuid.UUID
    name: str
    slug: str
    created_at: Optional[datetime] = None

    @classmethod
    def create_tag(cls, name: str) -> "Tag":
        return cls(id=uuid.uuid4(), name=name, slug=generate_slug(name))


@dataclass
class TaggedEntity:
    """Сущность, помеченная тегом"""
    tag: Tag
    entity: ContentEntity
