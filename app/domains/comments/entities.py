import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List


@dataclass
class Comment:
    """Комментарий к странице вместе с проекцией автора"""
    id: uuid.UUID
    page_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    parent_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_image: Optional[str] = None

    @classmethod
    def create_comment(
        cls,
        page_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None
    ) -> "Comment":
        return cls(id=uuid.uuid4(), page_id=page_id, user_id=user_id, content=content, parent_id=parent_id)


@dataclass
class CommentThread:
    """Комментарий верхнего уровня и ответы на него"""
    comment: Comment
    replies: List[Comment] = field(default_factory=list)


def build_threads(comments: List[Comment]) -> List[CommentThread]:
    """Раскладка по веткам; порядок внутри ветки сохраняется"""
    threads = {c.id: CommentThread(comment=c) for c in comments if c.parent_id is None}
    for comment in comments:
        if comment.parent_id is not None and comment.parent_id in threads:
            threads[comment.parent_id].replies.append(comment)
    return list(threads.values())
