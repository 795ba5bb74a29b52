from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.entities import ContentKind
from app.domains.identity.entities import Principal
from app.domains.search.schemas import SearchResultResponse
from app.domains.search.services import SearchService

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=List[SearchResultResponse])
async def search(
    q: str = Query("", max_length=200),
    kind: Optional[ContentKind] = Query(None, alias="type"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Поиск по контенту, доступному участнику"""
    results = await SearchService(db).search(q, principal, kind)
    return [
        SearchResultResponse(id=r.id, type=r.kind, name=r.name, slug=r.slug, snippet=r.snippet, rank=r.rank)
        for r in results
    ]
