import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class RevisionAuthor:
    """Проекция автора ревизии"""
    id: uuid.UUID
    name: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True)
class Revision:
    """Неизменяемый снимок содержимого страницы"""
    id: uuid.UUID
    page_id: uuid.UUID
    content: str
    revision_number: int
    html: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    author: Optional[RevisionAuthor] = None

    @classmethod
    def snapshot(
        cls,
        page_id: uuid.UUID,
        content: Optional[str],
        html: Optional[str],
        revision_number: int,
        created_by: Optional[uuid.UUID]
    ) -> "Revision":
        """Снимок текущего содержимого страницы под следующим номером"""
        if revision_number < 1:
            raise ValueError("Revision numbers start at 1")
        return cls(
            id=uuid.uuid4(),
            page_id=page_id,
            content=content or "",
            html=html,
            revision_number=revision_number,
            created_by=created_by,
            created_at=datetime.now(timezone.utc)
        )
