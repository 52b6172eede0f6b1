"""
Database Seeding

Creates the marketplace tables and loads the sample dataset. This is the
ingestion collaborator for demos and tests; the report engine never writes.

Usage:
    python -m src.ingestion.seed_db
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional

import structlog
from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.logging import configure_logging
from src.data.seed import SEED_RECORDS
from src.database.connection import close_database, get_db, get_engine, init_database
from src.database.models import MODELS, Base

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 1000

# Parents before children so foreign keys resolve on insert
LOAD_ORDER = [
    "customers",
    "products",
    "warehouses",
    "vendors",
    "inventory",
    "orders",
    "order_items",
    "shipments",
]


async def execute_batch_insert(session: AsyncSession, relation: str, records: List[Dict[str, Any]]) -> int:
    """Insert records in chunks; existing primary keys are skipped on PostgreSQL"""
    if not records:
        return 0

    model = MODELS[relation]
    is_postgres = session.bind is not None and session.bind.dialect.name == "postgresql"

    for i in range(0, len(records), CHUNK_SIZE):
        chunk = records[i:i + CHUNK_SIZE]
        if is_postgres:
            stmt = pg_insert(model).values(chunk).on_conflict_do_nothing()
        else:
            stmt = insert(model).values(chunk)
        await session.execute(stmt)

    logger.info(f"Inserted {len(records)} records into {model.__tablename__}")
    return len(records)


async def seed_database(
    session: AsyncSession,
    records: Optional[Mapping[str, List[Dict[str, Any]]]] = None,
) -> Dict[str, int]:
    """
    Load records into every table.

    Args:
        session: Open session; the caller commits
        records: Rows keyed by relation; defaults to the sample dataset

    Returns:
        Inserted row count per relation
    """
    records = records if records is not None else SEED_RECORDS
    counts = {}
    for relation in LOAD_ORDER:
        counts[relation] = await execute_batch_insert(session, relation, list(records.get(relation, [])))
    return counts


async def create_tables() -> None:
    """Create all marketplace tables if missing"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def main():
    configure_logging()
    logger.info("Starting database seeding...")
    await init_database()

    try:
        await create_tables()
        async with get_db() as db:
            counts = await seed_database(db)
        logger.info("Database seeding completed successfully!", **counts)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        raise
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(main())
