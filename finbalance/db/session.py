from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from finbalance.core.config import Settings, get_settings

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for ``database_url``.

    An in-memory SQLite database only lives as long as its connection, so it
    is pinned to a single shared one.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url, poolclass=StaticPool, connect_args={"check_same_thread": False}
        )
    return create_async_engine(database_url, pool_pre_ping=True)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(get_settings().database_url)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def init_db(settings: Settings | None = None) -> None:
    """Bring the schema to the latest Alembic revision before serving traffic."""
    settings = settings or get_settings()
    if not settings.auto_run_migrations:
        logger.info("Automatic migrations disabled")
        return
    if not ALEMBIC_INI.exists():
        logger.warning("alembic.ini not found, skipping migrations", path=str(ALEMBIC_INI))
        return

    config = Config(str(ALEMBIC_INI))
    try:
        await asyncio.to_thread(command.upgrade, config, "head")
    except Exception:  # pragma: no cover - propagate for FastAPI startup failure
        logger.exception("Failed to apply database migrations")
        raise
    logger.info("Database migrations are up-to-date")
