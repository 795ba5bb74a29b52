from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import settings


class Base(DeclarativeBase):
    pass


if settings.is_sqlite:
    # Соединения SQLite дешевые; не переиспользуем их между event loop'ами
    engine = create_async_engine(settings.database_url, echo=settings.sql_echo, poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        # Запись в SQLite сериализуется блокировкой на уровне БД
        conn.exec_driver_sql("BEGIN IMMEDIATE")
else:
    engine = create_async_engine(settings.database_url, echo=settings.sql_echo, pool_pre_ping=True)

SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession):
    """Единица работы: commit при успехе, rollback при любой ошибке"""
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
