from app.db.repositories.user_repository import UserRepository
from app.db.repositories.team_repository import TeamRepository
from app.db.repositories.content_repository import (
    ShelfRepository, BookRepository, ChapterRepository, PageRepository
)
from app.db.repositories.revision_repository import RevisionRepository
from app.db.repositories.tag_repository import TagRepository
from app.db.repositories.comment_repository import CommentRepository

__all__ = [
    "UserRepository",
    "TeamRepository",
    "ShelfRepository",
    "BookRepository",
    "ChapterRepository",
    "PageRepository",
    "RevisionRepository",
    "TagRepository",
    "CommentRepository"
]
