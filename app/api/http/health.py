from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    """Проверка работоспособности сервиса и БД"""
    await db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
