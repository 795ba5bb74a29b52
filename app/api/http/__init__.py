from app.api.http.health import router as health_router
from app.api.http.auth import router as auth_router
from app.api.http.users import router as users_router
from app.api.http.teams import router as teams_router
from app.api.http.shelves import router as shelves_router
from app.api.http.books import router as books_router
from app.api.http.chapters import router as chapters_router
from app.api.http.pages import router as pages_router
from app.api.http.reorder import router as reorder_router
from app.api.http.export import router as export_router
from app.api.http.summarizer import router as summarizer_router
from app.api.http.invitations import router as invitations_router
from app.api.http.tags import router as tags_router
from app.api.http.comments import router as comments_router
from app.api.http.search import router as search_router
from app.api.http.share import router as share_router
from app.api.http.imports import router as import_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "teams_router",
    "shelves_router",
    "books_router",
    "chapters_router",
    "pages_router",
    "reorder_router",
    "export_router",
    "summarizer_router",
    "invitations_router",
    "tags_router",
    "comments_router",
    "search_router",
    "share_router",
    "import_router"
]
