"""
Test Suite Configuration
"""
from typing import Any, AsyncGenerator, Callable, Dict, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.analytics import Snapshot
from src.config import ReportSettings, Settings
from src.data.seed import seed_snapshot
from src.database.models import Base


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        DEBUG=True,
    )


@pytest.fixture
def report_settings() -> ReportSettings:
    """Default report thresholds, independent of the environment"""
    return ReportSettings.model_construct()


@pytest.fixture
def seed() -> Snapshot:
    """Snapshot of the sample dataset"""
    return seed_snapshot()


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    """
    Build a snapshot from row dicts.

    Only the relations passed are populated; the rest are empty.
    """
    def _make(**records: List[Dict[str, Any]]) -> Snapshot:
        return Snapshot.from_records(**records)

    return _make


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared across sessions of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()
