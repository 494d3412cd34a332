"""
SparkPro Studio Workflow - Database Connection
==============================================

Engine and session factories for the workflow store.

The store commits (or rolls back) every write itself, so sessions are
plain units of work here; ORM rows must stay readable after commit, hence
expire_on_commit=False everywhere.
"""

from collections.abc import AsyncGenerator
from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from sparkflow.core.config import settings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# ==========================================================================
# Factories
# ==========================================================================

def is_memory_url(url: str) -> bool:
    return url.startswith("sqlite") and ":memory:" in url


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create an async engine for `url` (defaults to settings.DATABASE_URL).

    In-memory SQLite shares one connection (StaticPool) so every session
    sees the same database; file SQLite skips pool sizing; anything else
    gets the configured pool.
    """
    url = url or settings.DATABASE_URL
    echo = settings.DATABASE_ECHO if echo is None else echo

    if is_memory_url(url):
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=echo,
        pool_pre_ping=True,
    )


def session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()
AsyncSessionLocal = session_factory(engine)


# ==========================================================================
# Session Dependency
# ==========================================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; anything left uncommitted is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ==========================================================================
# Schema & Health
# ==========================================================================

async def create_tables(bind: AsyncEngine) -> None:
    from sparkflow.core import models  # noqa: F401  (registers tables on Base.metadata)

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def check_connection(bind: Optional[AsyncEngine] = None) -> bool:
    """True if a trivial query round-trips."""
    try:
        async with (bind or engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", error=str(e))
        return False
    return True


# ==========================================================================
# Lifecycle
# ==========================================================================

async def init_db() -> None:
    """Create missing tables on the application engine (dev and SQLite setups)."""
    await create_tables(engine)


async def close_db() -> None:
    await engine.dispose()
