from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.content.entities import ContentKind
from app.domains.identity.entities import Principal
from app.domains.tags.schemas import (
    TagCreate, TagAttach, TagResponse, TaggedEntityResponse, TagDetailResponse
)
from app.domains.tags.services import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=List[TagResponse])
async def list_tags(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Все теги по имени"""
    return [TagResponse.model_validate(t) for t in await TagService(db).list_tags()]


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    tag_data: TagCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Создание тега"""
    tag = await TagService(db).create_tag(tag_data, principal)
    return TagResponse.model_validate(tag)


@router.get("/entities/{kind}/{slug}", response_model=List[TagResponse])
async def entity_tags(
    kind: ContentKind,
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Теги полки, книги, главы или страницы"""
    tags = await TagService(db).entity_tags(kind, slug, principal)
    return [TagResponse.model_validate(t) for t in tags]


@router.post("/entities/{kind}/{slug}", response_model=List[TagResponse])
async def attach_tag(
    kind: ContentKind,
    slug: str,
    attach_data: TagAttach,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Привязка тега к сущности"""
    tags = await TagService(db).attach_tag(kind, slug, attach_data.tag_id, principal)
    return [TagResponse.model_validate(t) for t in tags]


@router.delete("/entities/{kind}/{slug}/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def detach_tag(
    kind: ContentKind,
    slug: str,
    tag_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Снятие тега с сущности"""
    await TagService(db).detach_tag(kind, slug, tag_id, principal)


@router.get("/{slug}", response_model=TagDetailResponse)
async def tag_detail(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Тег и помеченные им сущности"""
    tag, entities = await TagService(db).tag_detail(slug, principal)
    return TagDetailResponse(
        tag=TagResponse.model_validate(tag),
        entities=[
            TaggedEntityResponse(kind=e.kind, id=e.id, name=e.name, slug=e.slug)
            for e in entities
        ]
    )


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление тега (только admin)"""
    await TagService(db).delete_tag(tag_id, principal)
