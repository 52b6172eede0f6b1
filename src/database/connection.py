"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session lifecycle for the marketplace store.
The report engine only reads through it; the seed job is the only writer.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import get_settings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_sessions: Optional[async_sessionmaker[AsyncSession]] = None

NOT_INITIALIZED = "Database not initialized. Call init_database() first."


async def init_database(url: Optional[str] = None, **engine_kwargs) -> AsyncEngine:
    """
    Create the process-wide engine and verify it can connect.

    Args:
        url: Database URL; defaults to the configured async URL
        **engine_kwargs: Extra create_async_engine arguments (e.g. poolclass)
    """
    global _engine, _sessions

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()
    options: Dict[str, Any] = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,
        # Snapshot loads are short and infrequent
        "poolclass": NullPool,
        **engine_kwargs,
    }

    _engine = create_async_engine(url or settings.database.async_url, **options)
    _sessions = async_sessionmaker(_engine, expire_on_commit=False, autoflush=False)

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        await close_database()
        raise

    logger.info("Database connection established", url=_engine.url.render_as_string(hide_password=True))
    return _engine


async def close_database() -> None:
    global _engine, _sessions

    if _engine is None:
        return
    await _engine.dispose()
    _engine, _sessions = None, None
    logger.info("Database engine disposed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError(NOT_INITIALIZED)
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Session scope: commit on success, roll back on error.

    Example:
        async with get_db() as db:
            snapshot = await load_snapshot(db)
    """
    if _sessions is None:
        raise RuntimeError(NOT_INITIALIZED)

    async with _sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error("Rolling back session", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


async def check_database_health() -> Dict[str, Any]:
    """Round-trip a trivial query and report the latency"""
    started = time.perf_counter()
    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "latency_ms": round((time.perf_counter() - started) * 1000, 2)}
