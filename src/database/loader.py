"""
Snapshot Loader

Reads every marketplace table into a typed polars Snapshot inside a single
transaction, so all reports of a batch see one consistent read.
"""

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.analytics.snapshot import RELATIONS, SCHEMAS, Snapshot, empty_frame
from src.database.models import MODELS

logger = structlog.get_logger(__name__)


async def fetch_relation(session: AsyncSession, relation: str) -> pl.DataFrame:
    """Fetch all current rows of one relation as a DataFrame"""
    model = MODELS[relation]
    schema = SCHEMAS[relation]
    result = await session.execute(select(*[getattr(model, column) for column in schema]))
    rows = [dict(row) for row in result.mappings().all()]
    if not rows:
        return empty_frame(relation)
    return pl.from_dicts(rows, schema=schema)


async def load_snapshot(session: AsyncSession) -> Snapshot:
    """
    Materialize a snapshot of all eight relations.

    On PostgreSQL the reads run under REPEATABLE READ so concurrent ingestion
    cannot produce a torn snapshot.

    Args:
        session: Session with no statements issued yet in its transaction

    Returns:
        Snapshot: Fully materialized snapshot
    """
    bind = session.bind
    if bind is not None and bind.dialect.name == "postgresql":
        await session.connection(execution_options={"isolation_level": "REPEATABLE READ"})

    frames = {}
    for relation in RELATIONS:
        frames[relation] = await fetch_relation(session, relation)

    snapshot = Snapshot.from_frames(**frames)
    logger.info("Snapshot loaded from database", **snapshot.row_counts())
    return snapshot
