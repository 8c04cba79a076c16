"""
Async SQLAlchemy engine, session handling and schema bootstrap.

PostgreSQL (asyncpg) in deployment, SQLite (aiosqlite) for local runs and
tests. JSON columns use JSONB where the backend has it.
"""
import re
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite:///": "sqlite+aiosqlite:///",
}

JSONType = JSON().with_variant(JSONB(), "postgresql")

# Set by init_db(); data endpoints refuse to run without a schema
_db_available: bool = False


class Base(DeclarativeBase):
    pass


def normalize_database_url(database_url: str) -> str:
    """Swap a plain driver URL for its async counterpart."""
    for prefix, async_prefix in ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            return async_prefix + database_url[len(prefix):]
    return database_url


def create_engine() -> AsyncEngine:
    database_url = normalize_database_url(settings.database_url)
    logger.info(
        "Creating database engine",
        url=re.sub(r":([^:@/]+)@", ":***@", database_url),
    )

    options: dict[str, Any] = {"echo": settings.database_echo}
    # SQLite has no server-side pool to size
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(database_url, **options)


engine = create_engine()
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on any error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency; 503 when the database never came up."""
    if not _db_available:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    async with get_db_context() as session:
        yield session



async def init_db() -> None:
    """
    Create missing tables.

    A connection failure is logged, not raised: routing and search keep
    working while visit and location endpoints answer 503.
    """
    global _db_available
    import app.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        _db_available = False
        logger.warning("Database unavailable, data endpoints disabled", error=str(e))
        return

    _db_available = True
    logger.info("Database initialized")


def is_db_available() -> bool:
    return _db_available


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
