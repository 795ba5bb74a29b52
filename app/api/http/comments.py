from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.comments.entities import Comment
from app.domains.comments.schemas import (
    CommentCreate, CommentUpdate, CommentAuthor, CommentResponse, CommentThreadResponse
)
from app.domains.comments.services import CommentService
from app.domains.identity.entities import Principal

router = APIRouter(tags=["comments"])


def comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        page_id=comment.page_id,
        parent_id=comment.parent_id,
        content=comment.content,
        author=CommentAuthor(
            id=comment.user_id,
            name=comment.author_name,
            email=comment.author_email,
            image=comment.author_image
        ),
        created_at=comment.created_at,
        updated_at=comment.updated_at
    )


@router.get("/pages/{slug}/comments", response_model=List[CommentThreadResponse])
async def list_comments(
    slug: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Ветки комментариев страницы от старых к новым"""
    threads = await CommentService(db).page_threads(slug, principal)
    return [
        CommentThreadResponse(
            **comment_response(t.comment).model_dump(),
            replies=[comment_response(r) for r in t.replies]
        )
        for t in threads
    ]


@router.post("/pages/{slug}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    slug: str,
    comment_data: CommentCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Комментарий или ответ"""
    comment = await CommentService(db).add_comment(slug, comment_data, principal)
    return comment_response(comment)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: uuid.UUID,
    comment_data: CommentUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Правка своего комментария"""
    comment = await CommentService(db).update_comment(comment_id, comment_data, principal)
    return comment_response(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Удаление комментария с ответами"""
    await CommentService(db).delete_comment(comment_id, principal)
