from app.db.models.user import User
from app.db.models.team import Team, TeamMember, TeamInvitation
from app.db.models.content import Shelf, Book, Chapter, Page
from app.db.models.revision import Revision
from app.db.models.tag import Tag, Taggable
from app.db.models.comment import Comment

__all__ = [
    "User",
    "Team",
    "TeamMember",
    "TeamInvitation",
    "Shelf",
    "Book",
    "Chapter",
    "Page",
    "Revision",
    "Tag",
    "Taggable",
    "Comment"
]
