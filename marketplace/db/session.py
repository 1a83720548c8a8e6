from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from marketplace.core.config import Settings, get_settings


def async_database_url(url: str) -> str:
    """Point postgres URLs at the asyncpg driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url.replace("psycopg2", "asyncpg")


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    url = async_database_url(settings.DATABASE_URL)
    kwargs = {"pool_pre_ping": True}
    if url.startswith("postgresql+asyncpg"):
        kwargs.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
    return create_async_engine(url, **kwargs)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    SessionLocal = request.app.state.sessionmaker
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def script_session(settings: Settings | None = None) -> AsyncIterator[AsyncSession]:
    """Session for one-off scripts; the engine is disposed on exit."""
    engine = create_engine_from_settings(settings or get_settings())
    SessionLocal = create_sessionmaker(engine)
    try:
        async with SessionLocal() as session:
            yield session
    finally:
        await engine.dispose()
