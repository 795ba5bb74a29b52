from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.http import (
    health_router,
    auth_router,
    users_router,
    teams_router,
    shelves_router,
    books_router,
    chapters_router,
    pages_router,
    reorder_router,
    export_router,
    summarizer_router,
    invitations_router,
    tags_router,
    comments_router,
    search_router,
    share_router,
    import_router
)
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging

setup_logging()

app = FastAPI(
    title="TeamShelf",
    description="Командная вики: полки, книги, главы и страницы",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Подключаем роутеры
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(teams_router)
app.include_router(shelves_router)
app.include_router(books_router)
app.include_router(chapters_router)
app.include_router(pages_router)
app.include_router(reorder_router)
app.include_router(export_router)
app.include_router(summarizer_router)
app.include_router(invitations_router)
app.include_router(tags_router)
app.include_router(comments_router)
app.include_router(search_router)
app.include_router(share_router)
app.include_router(import_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "TeamShelf API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
