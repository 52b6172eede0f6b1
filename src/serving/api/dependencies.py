"""
API Dependencies

Snapshot provider for report endpoints. Each request materializes its own
snapshot, so every report in one response sees the same data.
"""

import structlog

from src.analytics.snapshot import Snapshot
from src.config import get_settings
from src.data.seed import seed_snapshot
from src.database.connection import get_db
from src.database.loader import load_snapshot

logger = structlog.get_logger(__name__)


async def get_snapshot() -> Snapshot:
    """FastAPI dependency: snapshot from the configured source."""
    if get_settings().reports.snapshot_source == "seed":
        return seed_snapshot()

    async with get_db() as db:
        return await load_snapshot(db)
